"""
Database Models using SQLAlchemy.

These define the storage schema for projects and their specification
artifacts (modules, use cases, sequence diagrams, API contracts, DTO schemas),
the links between them, and the per-scope code counters.
"""
from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
import datetime
import uuid

Base = declarative_base()

def generate_uuid():
    return str(uuid.uuid4())

def utcnow():
    return datetime.datetime.now(datetime.timezone.utc)

class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=generate_uuid)
    code = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    modules = relationship("Module", back_populates="project", cascade="all, delete-orphan")
    api_contracts = relationship("ApiContract", back_populates="project", cascade="all, delete-orphan")
    dto_schemas = relationship("DtoSchema", back_populates="project", cascade="all, delete-orphan")

class Module(Base):
    __tablename__ = "modules"
    __table_args__ = (UniqueConstraint("project_id", "mod_code"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    # Children block deletion of their parent at the service level
    parent_id = Column(String, ForeignKey("modules.id", ondelete="RESTRICT"), nullable=True)
    mod_code = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    project = relationship("Project", back_populates="modules")
    parent = relationship("Module", remote_side=[id], back_populates="children")
    children = relationship("Module", back_populates="parent")
    use_cases = relationship("UseCase", back_populates="module")

class UseCase(Base):
    __tablename__ = "use_cases"
    __table_args__ = (UniqueConstraint("project_id", "module_id", "uc_code"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(String, ForeignKey("modules.id", ondelete="RESTRICT"), nullable=False)
    uc_code = Column(String, nullable=False)
    title = Column(String, nullable=False)
    summary = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    module = relationship("Module", back_populates="use_cases")
    sequence_diagrams = relationship("SequenceDiagram", back_populates="use_case")

class SequenceDiagram(Base):
    __tablename__ = "sequence_diagrams"
    __table_args__ = (UniqueConstraint("project_id", "sd_code"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    use_case_id = Column(String, ForeignKey("use_cases.id", ondelete="RESTRICT"), nullable=False)
    sd_code = Column(String, nullable=False)
    title = Column(String, nullable=False)
    mermaid_src = Column(Text, nullable=False, default="")
    parse_status = Column(String, nullable=False, default="pending")  # pending, success, error
    parse_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    use_case = relationship("UseCase", back_populates="sequence_diagrams")
    api_links = relationship("ApiSequenceLink", back_populates="sequence", cascade="all, delete-orphan")

class ApiContract(Base):
    __tablename__ = "api_contracts"
    __table_args__ = (UniqueConstraint("project_id", "api_code"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    api_code = Column(String, nullable=False)
    domain = Column(String, nullable=False, default="GEN")
    method = Column(String, nullable=False)
    endpoint = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text)
    request_spec = Column(JSON, default=dict)
    response_spec = Column(JSON, default=dict)
    status_codes = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    project = relationship("Project", back_populates="api_contracts")
    sequence_links = relationship("ApiSequenceLink", back_populates="api", cascade="all, delete-orphan")
    dto_links = relationship("ApiDtoLink", back_populates="api", cascade="all, delete-orphan")

class DtoSchema(Base):
    __tablename__ = "dto_schemas"
    __table_args__ = (UniqueConstraint("project_id", "dto_code"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    dto_code = Column(String, nullable=False)
    title = Column(String, nullable=False)
    kind = Column(String, nullable=False)  # request, response
    schema = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    project = relationship("Project", back_populates="dto_schemas")
    api_links = relationship("ApiDtoLink", back_populates="dto", cascade="all, delete-orphan")

class ApiSequenceLink(Base):
    __tablename__ = "api_sequence_links"
    __table_args__ = (UniqueConstraint("api_id", "sequence_id", "step_ref"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    api_id = Column(String, ForeignKey("api_contracts.id", ondelete="CASCADE"), nullable=False)
    sequence_id = Column(String, ForeignKey("sequence_diagrams.id", ondelete="CASCADE"), nullable=False)
    step_ref = Column(Text, nullable=True)
    line_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    api = relationship("ApiContract", back_populates="sequence_links")
    sequence = relationship("SequenceDiagram", back_populates="api_links")

class ApiDtoLink(Base):
    __tablename__ = "api_dto_links"
    __table_args__ = (UniqueConstraint("api_id", "dto_id", "role"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    api_id = Column(String, ForeignKey("api_contracts.id", ondelete="CASCADE"), nullable=False)
    dto_id = Column(String, ForeignKey("dto_schemas.id", ondelete="CASCADE"), nullable=False)
    role = Column(String, nullable=False)  # req, res
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    api = relationship("ApiContract", back_populates="dto_links")
    dto = relationship("DtoSchema", back_populates="api_links")

class SeqCounter(Base):
    __tablename__ = "seq_counters"
    __table_args__ = (UniqueConstraint("project_id", "scope_type", "scope_ref1", "scope_ref2"),)

    id = Column(String, primary_key=True, default=generate_uuid)
    project_id = Column(String, nullable=False)
    scope_type = Column(String, nullable=False)
    # Empty string stands in for "no reference" so the unique key is total
    scope_ref1 = Column(String, nullable=False, default="")
    scope_ref2 = Column(String, nullable=False, default="")
    next_number = Column(BigInteger, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
