from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import Engine

from econtract_app.config import AppConfig
from econtract_app.core.demo_data import demo_contracts

from .base import ContractRepository
from .db import get_engine, init_db, make_session_factory
from .memory import InMemoryContractRepository
from .sql import SqlContractRepository

log = logging.getLogger(__name__)


def create_contract_repository(
    config: AppConfig, engine: Optional[Engine] = None
) -> ContractRepository:
    """Pick the backend for ``config.mode``."""
    if config.is_demo:
        seed = demo_contracts() if config.demo_seed else None
        log.info("using in-memory contract store (seeded=%s)", bool(seed))
        return InMemoryContractRepository(seed=seed)
    engine = engine or get_engine(config.contracts_dsn)
    init_db(engine)
    log.info("using SQL contract store (%s)", engine.dialect.name)
    return SqlContractRepository(make_session_factory(engine))


__all__ = ["create_contract_repository"]
