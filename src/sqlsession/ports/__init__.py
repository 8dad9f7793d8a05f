"""Port interfaces for sqlsession.

Ports define the contracts that driver adapters must implement.
Sessions and executors depend only on these abstractions.
"""

from sqlsession.ports.driver import DriverConnection, PreparedStatement, ResultCursor, Transaction

__all__ = [
    "DriverConnection",
    "PreparedStatement",
    "ResultCursor",
    "Transaction",
]
