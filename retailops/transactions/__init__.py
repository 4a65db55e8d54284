from retailops.transactions.coordinator import TransactionCoordinator
from retailops.transactions.unit_of_work import UnitOfWork, UnitOfWorkState

__all__ = ["TransactionCoordinator", "UnitOfWork", "UnitOfWorkState"]
