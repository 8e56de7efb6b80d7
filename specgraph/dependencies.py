from __future__ import annotations

from sqlalchemy.orm import Session

from specgraph.config import settings
from specgraph.db.database import SessionLocal
from specgraph.db.storage import SqlAlchemyStorage
from specgraph.application.code_allocator import CodeAllocator
from specgraph.application.artifact_service import ArtifactService
from specgraph.application.consistency_analyzer import ConsistencyAnalyzer
from specgraph.application.contract_validation_service import ContractValidationService
from specgraph.application.link_resolver import LinkResolver


def get_storage(db: Session | None = None) -> SqlAlchemyStorage:
    return SqlAlchemyStorage(db or SessionLocal(), settings.ALLOCATOR_ISOLATION_LEVEL)


def get_code_allocator(storage: SqlAlchemyStorage) -> CodeAllocator:
    return CodeAllocator(storage)


def get_artifact_service(storage: SqlAlchemyStorage) -> ArtifactService:
    return ArtifactService(
        storage=storage,
        allocator=get_code_allocator(storage),
        validation=ContractValidationService(storage),
    )


def get_link_resolver(storage: SqlAlchemyStorage) -> LinkResolver:
    return LinkResolver(storage=storage)


def get_consistency_analyzer(storage: SqlAlchemyStorage) -> ConsistencyAnalyzer:
    return ConsistencyAnalyzer(storage=storage)
