from .base import ContractRepository, paginate
from .factory import create_contract_repository
from .memory import InMemoryContractRepository
from .sql import SqlContractRepository

__all__ = [
    "ContractRepository",
    "InMemoryContractRepository",
    "SqlContractRepository",
    "create_contract_repository",
    "paginate",
]
