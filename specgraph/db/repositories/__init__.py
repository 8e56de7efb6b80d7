from specgraph.db.repositories.counters import CounterRepository
from specgraph.db.repositories.projects import ProjectRepository
from specgraph.db.repositories.modules import ModuleRepository
from specgraph.db.repositories.sequences import SequenceRepository
from specgraph.db.repositories.contracts import ApiContractRepository
from specgraph.db.repositories.dtos import DtoSchemaRepository
from specgraph.db.repositories.links import LinkRepository

__all__ = [
    'CounterRepository', 'ProjectRepository', 'ModuleRepository', 'SequenceRepository',
    'ApiContractRepository', 'DtoSchemaRepository', 'LinkRepository',
]
