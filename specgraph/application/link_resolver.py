"""Discovers API-to-diagram links from the calls written in diagram source."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from specgraph.diagram.parser import ParsedCall, parse_diagram
from specgraph.domain.endpoint_matcher import compile_template
from specgraph.domain.entities import ApiContractEntity, ApiSequenceLinkEntity
from specgraph.domain.errors import ConflictError, NotFoundError
from specgraph.domain.events import LinksDetected, event_publisher
from specgraph.domain.ports import StoragePort

logger = logging.getLogger(__name__)


def find_matching_contract(
    call: ParsedCall, contracts: Sequence[ApiContractEntity]
) -> Optional[ApiContractEntity]:
    """First contract with the call's method whose path template accepts the call's path."""
    if not call.is_api_call:
        return None
    for contract in contracts:
        if contract["method"].upper() != call.method:
            continue
        if compile_template(contract["endpoint"]).test(call.path):
            return contract
    return None


class LinkResolver:
    """
    Links the HTTP calls of a sequence diagram to the project's API contracts.

    Re-running detection on an unchanged diagram creates nothing new: links
    that already exist are skipped, and calls without a matching contract are
    left for the consistency check to report.
    """

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def auto_detect(self, sequence_id: str) -> List[ApiSequenceLinkEntity]:
        """
        Parse the stored diagram and link each recognized call to its contract.

        Args:
            sequence_id: Sequence diagram ID

        Returns:
            Links created by this run

        Raises:
            NotFoundError: If the diagram does not exist
        """
        sequence = self._storage.get_sequence(sequence_id)
        if not sequence:
            raise NotFoundError(f"Sequence diagram not found: {sequence_id}")

        result = parse_diagram(sequence["mermaid_src"])
        contracts = self._storage.get_project_apis(sequence["project_id"])

        created: List[ApiSequenceLinkEntity] = []
        for call in result.api_calls:
            contract = find_matching_contract(call, contracts)
            if contract is None:
                continue
            try:
                link = self._storage.create_api_sequence_link(
                    contract["id"],
                    sequence_id,
                    step_ref=call.raw,
                    line_number=call.line_number,
                )
            except ConflictError:
                logger.debug(f"Link {contract['api_code']} -> {sequence['sd_code']} line {call.line_number} exists")
                continue
            created.append(link)

        logger.info(f"Auto-detected {len(created)} API links for sequence {sequence['sd_code']}")
        event_publisher.publish(LinksDetected(
            event_id="",
            timestamp=None,
            aggregate_id=sequence_id,
            project_id=sequence["project_id"],
            created_link_ids=[link["id"] for link in created],
        ))
        return created

    find_matching_contract = staticmethod(find_matching_contract)
