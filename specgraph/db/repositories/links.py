from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from specgraph.db.models import ApiContract, ApiDtoLink, ApiSequenceLink
from specgraph.domain.errors import ConflictError
from typing import List, Optional

class LinkRepository:
    """Repository for API-to-sequence and API-to-DTO links."""

    def __init__(self, db: Session):
        self.db = db

    def create_sequence_link(self, api_id: str, sequence_id: str, step_ref: str = None,
                             line_number: int = None) -> ApiSequenceLink:
        """
        Link an API contract to a sequence diagram step.

        Args:
            api_id: API contract ID
            sequence_id: Sequence diagram ID
            step_ref: Source line of the step (optional)
            line_number: 1-based line number of the step (optional)

        Returns:
            Created link

        Raises:
            ConflictError: If the (api, sequence, step) link already exists
        """
        # NULL step refs never collide under a unique constraint
        existing = self.find_sequence_link(api_id, sequence_id, step_ref)
        if existing:
            raise ConflictError(f"Link already exists: {api_id} -> {sequence_id}")

        link = ApiSequenceLink(
            api_id=api_id,
            sequence_id=sequence_id,
            step_ref=step_ref,
            line_number=line_number,
        )
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"Link already exists: {api_id} -> {sequence_id}") from exc
        self.db.refresh(link)
        return link

    def find_sequence_link(self, api_id: str, sequence_id: str,
                           step_ref: Optional[str]) -> Optional[ApiSequenceLink]:
        query = self.db.query(ApiSequenceLink).filter(
            ApiSequenceLink.api_id == api_id,
            ApiSequenceLink.sequence_id == sequence_id,
        )
        if step_ref is None:
            query = query.filter(ApiSequenceLink.step_ref.is_(None))
        else:
            query = query.filter(ApiSequenceLink.step_ref == step_ref)
        return query.first()

    def create_dto_link(self, api_id: str, dto_id: str, role: str) -> ApiDtoLink:
        """
        Link an API contract to a DTO schema in a role.

        Args:
            api_id: API contract ID
            dto_id: DTO schema ID
            role: req or res

        Returns:
            Created link

        Raises:
            ConflictError: If the (api, dto, role) link already exists
        """
        link = ApiDtoLink(api_id=api_id, dto_id=dto_id, role=role)
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"DTO link already exists: {api_id} -> {dto_id} ({role})") from exc
        self.db.refresh(link)
        return link

    def get_project_sequence_links(self, project_id: str) -> List[ApiSequenceLink]:
        return (
            self.db.query(ApiSequenceLink)
            .join(ApiContract, ApiSequenceLink.api_id == ApiContract.id)
            .filter(ApiContract.project_id == project_id)
            .order_by(ApiSequenceLink.created_at)
            .all()
        )

    def get_project_dto_links(self, project_id: str) -> List[ApiDtoLink]:
        return (
            self.db.query(ApiDtoLink)
            .join(ApiContract, ApiDtoLink.api_id == ApiContract.id)
            .filter(ApiContract.project_id == project_id)
            .order_by(ApiDtoLink.created_at)
            .all()
        )

    def get_sequence_links(self, sequence_id: str) -> List[ApiSequenceLink]:
        return (
            self.db.query(ApiSequenceLink)
            .filter(ApiSequenceLink.sequence_id == sequence_id)
            .order_by(ApiSequenceLink.line_number)
            .all()
        )

    def count_dto_links(self, dto_id: str) -> int:
        return self.db.query(ApiDtoLink).filter(ApiDtoLink.dto_id == dto_id).count()
