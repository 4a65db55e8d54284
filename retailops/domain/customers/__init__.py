from retailops.domain.customers.commands import Address, CustomerRef
from retailops.domain.customers.directory import CustomerDirectory, value_tier

__all__ = ["Address", "CustomerDirectory", "CustomerRef", "value_tier"]
