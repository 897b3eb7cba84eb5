"""
Curriculum data models for the Rollout Scheduler.

The curriculum is the fixed 'Demand' of a rollout: an ordered list of modules,
each made of ordered unit standards carrying credit weights.
"""

from typing import List, Optional, Dict
from pydantic import BaseModel, Field, model_validator, ConfigDict


class UnitStandard(BaseModel):
    """A single registered unit standard and its credit weight."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="SAQA unit standard code, e.g. '7480'")
    title: str = Field(default="", description="Registered title")
    credits: int = Field(description="Credit weight (1 credit = 10 notional hours)")


class Module(BaseModel):
    """
    An ordered group of unit standards delivered as one block.
    The module credit weight always equals the sum of its unit standards.
    """
    model_config = ConfigDict(frozen=True)

    module_number: int = Field(ge=1, description="1-based position in the curriculum")
    name: str = Field(min_length=1, description="Human-readable module name")
    unit_standards: List[UnitStandard] = Field(default_factory=list)
    credits: Optional[int] = Field(
        default=None,
        description="Module credit weight. Derived from the unit standards when omitted."
    )

    @model_validator(mode='before')
    @classmethod
    def derive_credits(cls, data):
        """Fill in the module credits from its unit standards when not supplied."""
        if isinstance(data, dict) and data.get('credits') is None:
            standards = data.get('unit_standards') or []
            data = dict(data)
            data['credits'] = sum(
                s.credits if isinstance(s, UnitStandard) else int(s.get('credits', 0))
                for s in standards
            )
        return data

    @model_validator(mode='after')
    def validate_credit_sum(self):
        total = sum(us.credits for us in self.unit_standards)
        if self.credits != total:
            raise ValueError(
                f"Module {self.module_number} credits ({self.credits}) must equal "
                f"the sum of its unit standards ({total})"
            )
        return self


class CurriculumDefinition(BaseModel):
    """
    Read-only qualification structure. Process-wide constant; never mutated.
    """
    model_config = ConfigDict(frozen=True, json_schema_extra={
        "example": {
            "name": "NVC: New Venture Creation (SMME) NQF Level 2",
            "required_credits": 138,
            "modules": [
                {
                    "module_number": 1,
                    "name": "Numeracy",
                    "unit_standards": [
                        {"id": "7480", "title": "Demonstrate understanding of rational and irrational numbers", "credits": 2}
                    ]
                }
            ]
        }
    })

    name: str = Field(default="Curriculum", description="Qualification title")
    modules: List[Module] = Field(default_factory=list)
    total_credits: Optional[int] = Field(
        default=None,
        description="Qualification total. Must equal the sum of the module credits; derived when omitted."
    )
    required_credits: Optional[int] = Field(
        default=None,
        description="Credits required for the qualification. Defaults to total_credits."
    )

    @model_validator(mode='after')
    def validate_totals(self):
        # frozen model: totals are filled in through object.__setattr__
        module_total = sum(m.credits for m in self.modules)
        if self.total_credits is None:
            object.__setattr__(self, 'total_credits', module_total)
        elif self.total_credits != module_total:
            raise ValueError(
                f"total_credits ({self.total_credits}) must equal the sum of the module credits ({module_total})"
            )
        if self.required_credits is None:
            object.__setattr__(self, 'required_credits', self.total_credits)
        if self.required_credits > self.total_credits:
            raise ValueError("required_credits cannot exceed total_credits")
        return self

    def credit_map(self) -> Dict[str, int]:
        """unit_standard_id -> credits for every unit standard in the curriculum."""
        return {
            us.id: us.credits
            for module in self.modules
            for us in module.unit_standards
        }

    def module_for_unit(self, unit_standard_id: str) -> Optional[Module]:
        for module in self.modules:
            if any(us.id == unit_standard_id for us in module.unit_standards):
                return module
        return None
