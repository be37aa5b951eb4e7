"""
Contract Tracker for loading and managing the contract book.
"""
import logging
from typing import List, Optional
from .contract import Contract
from .store_connection import StoreConnectionManager, StoreError

logger = logging.getLogger(__name__)


class ContractStore:
    """CRUD client for the contract store endpoint."""

    def __init__(self, connection: StoreConnectionManager, path: str = '/api/contracts'):
        """
        Initialize contract store client.

        Args:
            connection: Store connection manager
            path: Contracts endpoint path
        """
        self.connection = connection
        self.path = path

    def list(self) -> List[Contract]:
        """Fetch every contract in the store."""
        data = self.connection.get(self.path)
        if not isinstance(data, list):
            raise StoreError(f"Expected a contract list, got {type(data).__name__}")
        return [Contract.from_dict(item) for item in data]

    def create(self, contract: Contract) -> Contract:
        """Create a contract and return the stored copy with its identifier."""
        data = self.connection.post(self.path, json=contract.to_dict(include_id=False))
        return Contract.from_dict(data)

    def update(self, contract: Contract) -> Contract:
        """Replace a stored contract and return the stored copy."""
        data = self.connection.put(self.path, json=contract.to_dict())
        return Contract.from_dict(data)

    def delete(self, contract_id: str):
        """Delete a contract by identifier."""
        self.connection.delete(self.path, params={'id': contract_id})


class ContractTracker:
    """
    Tracks the contract book and the selected contract.

    Every mutation replaces ``contracts`` with a new list so downstream
    recalculation can detect the change by identity.
    """

    def __init__(self, store: ContractStore):
        """
        Initialize contract tracker.

        Args:
            store: Contract store client
        """
        self.store = store
        self.contracts: List[Contract] = []
        self.selected_contract: Optional[Contract] = None

    def load_contracts(self) -> List[Contract]:
        """
        Load all contracts from the store.

        Returns:
            List of contracts (empty if the store is unavailable)
        """
        try:
            contracts = self.store.list()
            self.contracts = contracts
            logger.info(f"Loaded {len(contracts)} contracts")
        except StoreError as e:
            logger.error(f"Error fetching contracts: {e}")
        return self.contracts

    def add_contract(self, contract: Contract) -> Contract:
        """
        Create a contract in the store and append it to the book.

        Raises:
            StoreError: If the store rejects the contract; the book is unchanged
        """
        try:
            created = self.store.create(contract)
        except StoreError as e:
            logger.error(f"Error creating contract: {e}")
            raise

        self.contracts = [*self.contracts, created]
        logger.debug(f"Added contract: {created.name}")
        return created

    def update_contract(self, contract: Contract) -> Contract:
        """
        Update a contract in the store and replace it in the book.

        Raises:
            StoreError: If the store rejects the update; the book is unchanged
        """
        try:
            updated = self.store.update(contract)
        except StoreError as e:
            logger.error(f"Error updating contract: {e}")
            raise

        self.contracts = [updated if existing.matches(updated) else existing
                          for existing in self.contracts]

        if self.selected_contract and self.selected_contract.matches(updated):
            self.selected_contract = updated

        logger.debug(f"Updated contract: {updated.name}")
        return updated

    def delete_contract(self, contract_id: str):
        """
        Delete a contract from the store and the book.

        Raises:
            StoreError: If the store rejects the delete; the book is unchanged
        """
        try:
            self.store.delete(contract_id)
        except StoreError as e:
            logger.error(f"Error deleting contract: {e}")
            raise

        self.contracts = [c for c in self.contracts if c.identifier() != contract_id]

        if self.selected_contract and self.selected_contract.identifier() == contract_id:
            self.selected_contract = None

        logger.debug(f"Deleted contract: {contract_id}")

    def select_contract(self, contract_id: Optional[str]) -> Optional[Contract]:
        """Select a contract by identifier, or clear the selection with None."""
        self.selected_contract = self.get_contract(contract_id) if contract_id else None
        return self.selected_contract

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        """Get contract by identifier."""
        for contract in self.contracts:
            if contract.identifier() == contract_id:
                return contract
        return None

    def get_contracts_by_type(self, contract_type: str) -> List[Contract]:
        """Get contracts of one type (retail, wholesale or offtake)."""
        return [c for c in self.contracts if c.type == contract_type]

    def get_contracts_by_state(self, state: str) -> List[Contract]:
        """Get contracts for one state."""
        return [c for c in self.contracts if c.state == state]

    def get_active_contracts(self) -> List[Contract]:
        """Get only active contracts."""
        return [c for c in self.contracts if c.status == 'active']

    def get_total_annual_volume(self) -> float:
        """Calculate total contracted annual volume."""
        return sum(c.annual_volume for c in self.contracts)
