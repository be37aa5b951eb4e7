"""
Unit tests for contract store client and tracker.
"""
import unittest
import sys
from pathlib import Path
from unittest.mock import MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_mtm.data_collection.contract import Contract
from energy_mtm.data_collection.contract_tracker import ContractStore, ContractTracker
from energy_mtm.data_collection.store_connection import StoreError


STORED = [
    {'_id': 'a1', 'name': 'Alpha Swap', 'type': 'wholesale', 'category': 'Swap', 'state': 'NSW',
     'counterparty': 'Gen Co', 'startDate': '2025-01-01', 'endDate': '2025-12-31',
     'annualVolume': 1200, 'strikePrice': 80, 'unit': 'Energy', 'volumeShape': 'flat',
     'status': 'active', 'indexation': 'Fixed', 'referenceDate': '2025-01-01'},
    {'id': 2, 'name': 'Beta Retail', 'type': 'retail', 'state': 'VIC',
     'annualVolume': 500, 'strikePrice': 95, 'volumeShape': 'wind', 'status': 'pending'},
]


class TestContract(unittest.TestCase):
    """Test contract serialisation."""

    def test_round_trip_keeps_store_fields(self):
        """Test camelCase fields survive from_dict/to_dict."""
        contract = Contract.from_dict(STORED[0])

        self.assertEqual(contract.doc_id, 'a1')
        self.assertEqual(contract.annual_volume, 1200.0)
        self.assertEqual(contract.to_dict(), {**STORED[0], 'annualVolume': 1200.0, 'strikePrice': 80.0})

    def test_new_contract_has_no_identifier(self):
        """Test creation payload omits ids."""
        contract = Contract(name='New', type='offtake', state='SA', annual_volume=10, strike_price=50)

        self.assertTrue(contract.is_new)
        self.assertIsNone(contract.identifier())
        self.assertNotIn('_id', contract.to_dict(include_id=False))

    def test_matches(self):
        """Test matching by document id, numeric id or name."""
        a = Contract.from_dict(STORED[0])
        b = Contract.from_dict(STORED[1])

        self.assertTrue(a.matches(Contract.from_dict({**STORED[0], 'name': 'Renamed'})))
        self.assertTrue(b.matches(Contract.from_dict({**STORED[1], 'name': 'Renamed'})))
        self.assertFalse(a.matches(b))

    def test_matches_numeric_id_zero(self):
        """Test a numeric id of 0 still identifies the record."""
        first = Contract(name='First', type='retail', state='NSW', annual_volume=1,
                         strike_price=1, id=0)
        renamed = Contract(name='Renamed', type='retail', state='NSW', annual_volume=1,
                           strike_price=1, id=0)

        self.assertTrue(first.matches(renamed))
        self.assertEqual(first.identifier(), '0')


class TestContractTracker(unittest.TestCase):
    """Test contract tracker."""

    def setUp(self):
        """Set up tracker over a mocked connection."""
        self.connection = MagicMock()
        self.connection.get.return_value = STORED
        self.tracker = ContractTracker(ContractStore(self.connection))
        self.tracker.load_contracts()

    def test_load_contracts(self):
        """Test contracts load from the store."""
        self.assertEqual([c.name for c in self.tracker.contracts], ['Alpha Swap', 'Beta Retail'])
        self.connection.get.assert_called_with('/api/contracts')

    def test_load_failure_keeps_book_empty(self):
        """Test a failed initial load leaves an empty book."""
        self.connection.get.side_effect = StoreError('down')
        tracker = ContractTracker(ContractStore(self.connection))

        self.assertEqual(tracker.load_contracts(), [])

    def test_add_contract(self):
        """Test created contracts are appended."""
        self.connection.post.return_value = {'_id': 'c3', 'name': 'Gamma', 'type': 'offtake',
                                             'state': 'QLD', 'annualVolume': 10, 'strikePrice': 55}
        before = self.tracker.contracts

        created = self.tracker.add_contract(Contract(name='Gamma', type='offtake', state='QLD',
                                                     annual_volume=10, strike_price=55))

        self.assertEqual(created.doc_id, 'c3')
        self.assertEqual(len(self.tracker.contracts), 3)
        self.assertIsNot(self.tracker.contracts, before)
        payload = self.connection.post.call_args.kwargs['json']
        self.assertNotIn('_id', payload)

    def test_failed_add_leaves_book_unchanged(self):
        """Test store failures propagate without mutating the book."""
        self.connection.post.side_effect = StoreError('rejected', status_code=400)
        before = self.tracker.contracts

        with self.assertRaises(StoreError):
            self.tracker.add_contract(Contract(name='Gamma', type='offtake', state='QLD',
                                               annual_volume=10, strike_price=55))

        self.assertIs(self.tracker.contracts, before)

    def test_update_contract_refreshes_selection(self):
        """Test updates replace the stored and selected contract."""
        self.tracker.select_contract('a1')
        self.connection.put.return_value = {**STORED[0], 'strikePrice': 85}

        self.tracker.update_contract(Contract.from_dict({**STORED[0], 'strikePrice': 85}))

        self.assertEqual(self.tracker.contracts[0].strike_price, 85.0)
        self.assertEqual(self.tracker.selected_contract.strike_price, 85.0)
        self.assertEqual(self.tracker.contracts[1].name, 'Beta Retail')

    def test_failed_update_leaves_book_unchanged(self):
        """Test failed updates keep the old contract."""
        self.connection.put.side_effect = StoreError('Failed to update contract')

        with self.assertRaises(StoreError):
            self.tracker.update_contract(Contract.from_dict({**STORED[0], 'strikePrice': 85}))

        self.assertEqual(self.tracker.contracts[0].strike_price, 80.0)

    def test_delete_contract(self):
        """Test deletes remove the contract and clear the selection."""
        self.tracker.select_contract('2')
        self.tracker.delete_contract('2')

        self.connection.delete.assert_called_with('/api/contracts', params={'id': '2'})
        self.assertEqual([c.name for c in self.tracker.contracts], ['Alpha Swap'])
        self.assertIsNone(self.tracker.selected_contract)

    def test_filters(self):
        """Test book filters."""
        self.assertEqual(len(self.tracker.get_contracts_by_type('retail')), 1)
        self.assertEqual(len(self.tracker.get_contracts_by_state('NSW')), 1)
        self.assertEqual(len(self.tracker.get_active_contracts()), 1)
        self.assertEqual(self.tracker.get_total_annual_volume(), 1700.0)


if __name__ == '__main__':
    unittest.main()
