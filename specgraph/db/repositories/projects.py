from sqlalchemy.orm import Session
from specgraph.db.models import Project
from typing import Optional

class ProjectRepository:
    """Repository for project operations."""

    def __init__(self, db: Session):
        self.db = db

    def create_project(self, name: str, code: str, description: str = None) -> Project:
        """
        Create a new project.

        Args:
            name: Project name
            code: Project code
            description: Project description (optional)

        Returns:
            Created project
        """
        project = Project(name=name, code=code, description=description)
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        """
        Get a project by ID.

        Args:
            project_id: Project ID

        Returns:
            Project if found, None otherwise
        """
        return self.db.query(Project).filter(Project.id == project_id).first()
