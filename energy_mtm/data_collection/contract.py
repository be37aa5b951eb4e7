"""
Contract class for energy supply and offtake agreements.
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any

CONTRACT_TYPES = ('retail', 'wholesale', 'offtake')
VOLUME_SHAPES = ('flat', 'solar', 'wind', 'custom')
CONTRACT_STATUSES = ('active', 'pending')

# Attribute name -> store field name
_FIELD_MAP = {
    'name': 'name',
    'type': 'type',
    'category': 'category',
    'state': 'state',
    'counterparty': 'counterparty',
    'start_date': 'startDate',
    'end_date': 'endDate',
    'annual_volume': 'annualVolume',
    'strike_price': 'strikePrice',
    'unit': 'unit',
    'volume_shape': 'volumeShape',
    'status': 'status',
    'indexation': 'indexation',
    'reference_date': 'referenceDate',
}


@dataclass
class Contract:
    """
    Represents an energy contract held in the contract store.

    The store identifies documents either by a string ``_id`` or by a
    numeric ``id``; both are kept so updates can be matched either way.
    """
    name: str
    type: str
    state: str
    annual_volume: float
    strike_price: float
    volume_shape: str = 'flat'
    category: str = ''
    counterparty: str = ''
    start_date: str = ''
    end_date: str = ''
    unit: str = 'Energy'
    status: str = 'active'
    indexation: str = 'Fixed'
    reference_date: str = ''

    # Store identifiers (absent before creation)
    doc_id: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        """Normalise numeric fields."""
        self.annual_volume = float(self.annual_volume)
        self.strike_price = float(self.strike_price)

    @property
    def is_retail(self) -> bool:
        """Retail contracts are valued strike minus market."""
        return self.type == 'retail'

    @property
    def is_new(self) -> bool:
        """True until the store has assigned an identifier."""
        return self.doc_id is None and self.id is None

    def identifier(self) -> Optional[str]:
        """Return the store identifier as a string, preferring ``_id``."""
        if self.doc_id:
            return self.doc_id
        if self.id is not None:
            return str(self.id)
        return None

    def matches(self, other: 'Contract') -> bool:
        """
        Check whether two contracts refer to the same stored record.

        Args:
            other: Contract to compare against

        Returns:
            True if the document ids, numeric ids or names match
        """
        if self.doc_id and other.doc_id and self.doc_id == other.doc_id:
            return True
        if self.id is not None and other.id is not None and self.id == other.id:
            return True
        return self.name == other.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Contract':
        """
        Build a contract from a store document.

        Args:
            data: JSON document with camelCase keys

        Returns:
            Contract instance
        """
        kwargs = {}
        for attr, key in _FIELD_MAP.items():
            if key in data and data[key] is not None:
                kwargs[attr] = data[key]

        numeric_id = data.get('id')
        return cls(
            doc_id=data.get('_id'),
            id=int(numeric_id) if numeric_id is not None else None,
            **kwargs
        )

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        """
        Serialise to a store document.

        Args:
            include_id: Include store identifiers when present

        Returns:
            JSON-compatible dictionary with camelCase keys
        """
        data = {key: getattr(self, attr) for attr, key in _FIELD_MAP.items()}
        if include_id:
            if self.doc_id:
                data['_id'] = self.doc_id
            if self.id is not None:
                data['id'] = self.id
        return data

    def __repr__(self) -> str:
        """String representation of contract."""
        return (f"Contract({self.name}, {self.type}, {self.state}, "
                f"vol:{self.annual_volume:,.2f}, strike:{self.strike_price:.2f}, "
                f"shape:{self.volume_shape})")
