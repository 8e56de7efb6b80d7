from sqlalchemy.orm import Session
from specgraph.db.models import Module, UseCase
from typing import List, Optional

class ModuleRepository:
    """Repository for module and use case operations."""

    def __init__(self, db: Session):
        self.db = db

    def create_module(self, project_id: str, mod_code: str, title: str,
                      parent_id: str = None, description: str = None, order: int = 0) -> Module:
        """
        Create a new module in a project.

        Args:
            project_id: Project ID
            mod_code: Allocated module code
            title: Module title
            parent_id: Parent module ID (optional)
            description: Module description (optional)
            order: Sort order among siblings

        Returns:
            Created module
        """
        module = Module(
            project_id=project_id,
            parent_id=parent_id,
            mod_code=mod_code,
            title=title,
            description=description,
            order=order,
        )
        self.db.add(module)
        self.db.commit()
        self.db.refresh(module)
        return module

    def get_module(self, module_id: str) -> Optional[Module]:
        return self.db.query(Module).filter(Module.id == module_id).first()

    def get_project_modules(self, project_id: str) -> List[Module]:
        """
        Get all modules in a project.

        Args:
            project_id: Project ID

        Returns:
            Modules ordered by sibling order, then code
        """
        return (
            self.db.query(Module)
            .filter(Module.project_id == project_id)
            .order_by(Module.order, Module.mod_code)
            .all()
        )

    def set_parent(self, module_id: str, parent_id: Optional[str]) -> Optional[Module]:
        module = self.get_module(module_id)
        if not module:
            return None

        module.parent_id = parent_id
        self.db.commit()
        self.db.refresh(module)
        return module

    def count_children(self, module_id: str) -> int:
        return self.db.query(Module).filter(Module.parent_id == module_id).count()

    def count_use_cases(self, module_id: str) -> int:
        return self.db.query(UseCase).filter(UseCase.module_id == module_id).count()

    def delete_module(self, module_id: str) -> bool:
        """
        Delete a module by ID.

        Args:
            module_id: Module ID

        Returns:
            True if module was deleted, False otherwise
        """
        module = self.get_module(module_id)
        if not module:
            return False

        self.db.delete(module)
        self.db.commit()
        return True

    def create_use_case(self, project_id: str, module_id: str, uc_code: str,
                        title: str, summary: str = None) -> UseCase:
        use_case = UseCase(
            project_id=project_id,
            module_id=module_id,
            uc_code=uc_code,
            title=title,
            summary=summary,
        )
        self.db.add(use_case)
        self.db.commit()
        self.db.refresh(use_case)
        return use_case

    def get_use_case(self, use_case_id: str) -> Optional[UseCase]:
        return self.db.query(UseCase).filter(UseCase.id == use_case_id).first()

    def get_project_use_cases(self, project_id: str) -> List[UseCase]:
        return (
            self.db.query(UseCase)
            .filter(UseCase.project_id == project_id)
            .order_by(UseCase.uc_code)
            .all()
        )

    def delete_use_case(self, use_case_id: str) -> bool:
        use_case = self.get_use_case(use_case_id)
        if not use_case:
            return False

        self.db.delete(use_case)
        self.db.commit()
        return True
