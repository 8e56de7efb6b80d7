from sqlalchemy.orm import Session
from specgraph.db.models import DtoSchema
from typing import Any, Dict, List, Optional

class DtoSchemaRepository:
    """Repository for DTO schema operations."""

    def __init__(self, db: Session):
        self.db = db

    def create_dto(self, project_id: str, dto_code: str, title: str, kind: str,
                   schema: Dict[str, Any] = None) -> DtoSchema:
        """
        Create a new DTO schema.

        Args:
            project_id: Project ID
            dto_code: Allocated DTO code
            title: DTO title
            kind: request or response
            schema: JSON schema document (optional)

        Returns:
            Created DTO schema
        """
        dto = DtoSchema(
            project_id=project_id,
            dto_code=dto_code,
            title=title,
            kind=kind,
            schema=schema or {},
        )
        self.db.add(dto)
        self.db.commit()
        self.db.refresh(dto)
        return dto

    def get_dto(self, dto_id: str) -> Optional[DtoSchema]:
        return self.db.query(DtoSchema).filter(DtoSchema.id == dto_id).first()

    def get_project_dtos(self, project_id: str) -> List[DtoSchema]:
        return (
            self.db.query(DtoSchema)
            .filter(DtoSchema.project_id == project_id)
            .order_by(DtoSchema.created_at, DtoSchema.dto_code)
            .all()
        )

    def delete_dto(self, dto_id: str) -> bool:
        dto = self.get_dto(dto_id)
        if not dto:
            return False

        self.db.delete(dto)
        self.db.commit()
        return True
