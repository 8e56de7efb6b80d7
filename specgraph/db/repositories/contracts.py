from sqlalchemy.orm import Session
from specgraph.db.models import ApiContract
from typing import Any, Dict, List, Optional

class ApiContractRepository:
    """Repository for API contract operations."""

    def __init__(self, db: Session):
        self.db = db

    def create_contract(self, project_id: str, api_code: str, domain: str, method: str,
                        endpoint: str, title: str, description: str = None,
                        request_spec: Dict[str, Any] = None,
                        response_spec: Dict[str, Any] = None,
                        status_codes: Dict[str, Any] = None) -> ApiContract:
        """
        Create a new API contract.

        Args:
            project_id: Project ID
            api_code: Allocated contract code
            domain: Normalized domain qualifier
            method: HTTP method (uppercase)
            endpoint: Path template
            title: Contract title
            description: Contract description (optional)
            request_spec: Request specification document (optional)
            response_spec: Response specification document (optional)
            status_codes: Status code documentation (optional)

        Returns:
            Created API contract
        """
        contract = ApiContract(
            project_id=project_id,
            api_code=api_code,
            domain=domain,
            method=method,
            endpoint=endpoint,
            title=title,
            description=description,
            request_spec=request_spec or {},
            response_spec=response_spec or {},
            status_codes=status_codes or {},
        )
        self.db.add(contract)
        self.db.commit()
        self.db.refresh(contract)
        return contract

    def get_contract(self, api_id: str) -> Optional[ApiContract]:
        return self.db.query(ApiContract).filter(ApiContract.id == api_id).first()

    def get_project_contracts(self, project_id: str) -> List[ApiContract]:
        """
        Get all API contracts in a project.

        Args:
            project_id: Project ID

        Returns:
            Contracts in creation order
        """
        return (
            self.db.query(ApiContract)
            .filter(ApiContract.project_id == project_id)
            .order_by(ApiContract.created_at, ApiContract.api_code)
            .all()
        )

    def find_by_method_endpoint(self, project_id: str, method: str, endpoint: str) -> List[ApiContract]:
        return (
            self.db.query(ApiContract)
            .filter(
                ApiContract.project_id == project_id,
                ApiContract.method == method,
                ApiContract.endpoint == endpoint,
            )
            .all()
        )

    def delete_contract(self, api_id: str) -> bool:
        contract = self.get_contract(api_id)
        if not contract:
            return False

        self.db.delete(contract)
        self.db.commit()
        return True
