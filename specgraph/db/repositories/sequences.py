from sqlalchemy.orm import Session
from specgraph.db.models import SequenceDiagram
from typing import List, Optional

class SequenceRepository:
    """Repository for sequence diagram operations."""

    def __init__(self, db: Session):
        self.db = db

    def create_sequence(self, project_id: str, use_case_id: str, sd_code: str, title: str,
                        mermaid_src: str = "", parse_status: str = "pending",
                        parse_error: str = None) -> SequenceDiagram:
        """
        Create a new sequence diagram under a use case.

        Args:
            project_id: Project ID
            use_case_id: Owning use case ID
            sd_code: Allocated diagram code
            title: Diagram title
            mermaid_src: Diagram source text
            parse_status: Stored parse status
            parse_error: Stored parse error (optional)

        Returns:
            Created sequence diagram
        """
        sequence = SequenceDiagram(
            project_id=project_id,
            use_case_id=use_case_id,
            sd_code=sd_code,
            title=title,
            mermaid_src=mermaid_src,
            parse_status=parse_status,
            parse_error=parse_error,
        )
        self.db.add(sequence)
        self.db.commit()
        self.db.refresh(sequence)
        return sequence

    def get_sequence(self, sequence_id: str) -> Optional[SequenceDiagram]:
        return self.db.query(SequenceDiagram).filter(SequenceDiagram.id == sequence_id).first()

    def get_project_sequences(self, project_id: str) -> List[SequenceDiagram]:
        return (
            self.db.query(SequenceDiagram)
            .filter(SequenceDiagram.project_id == project_id)
            .order_by(SequenceDiagram.sd_code)
            .all()
        )

    def count_for_use_case(self, use_case_id: str) -> int:
        return self.db.query(SequenceDiagram).filter(SequenceDiagram.use_case_id == use_case_id).count()

    def update_source(self, sequence_id: str, mermaid_src: str, parse_status: str,
                      parse_error: Optional[str]) -> Optional[SequenceDiagram]:
        """
        Store new diagram source together with its parse outcome.

        Args:
            sequence_id: Sequence diagram ID
            mermaid_src: Diagram source text
            parse_status: pending, success or error
            parse_error: Error message when parse_status is error

        Returns:
            Updated sequence diagram if found, None otherwise
        """
        sequence = self.get_sequence(sequence_id)
        if not sequence:
            return None

        sequence.mermaid_src = mermaid_src
        sequence.parse_status = parse_status
        sequence.parse_error = parse_error
        self.db.commit()
        self.db.refresh(sequence)
        return sequence

    def delete_sequence(self, sequence_id: str) -> bool:
        sequence = self.get_sequence(sequence_id)
        if not sequence:
            return False

        self.db.delete(sequence)
        self.db.commit()
        return True
