"""
Filter metadata models and schemas
"""
import math

from pydantic import BaseModel, Field, field_validator

from bloombox.core.sketches.sizing import MAX_U32, MAX_U64


class FilterHeader(BaseModel):
    """Fixed-size header of a serialized Bloom filter"""

    bit_length: int = Field(..., ge=1, le=MAX_U64, description="Total logical bits")
    hash_count: int = Field(..., ge=1, le=MAX_U32, description="Bit positions per element")
    expected_items: int = Field(..., ge=1, le=MAX_U64)
    target_fp_rate: float
    inserted_count: int = Field(default=0, ge=0, le=MAX_U64)

    @field_validator("target_fp_rate")
    @classmethod
    def check_fp_rate(cls, v: float) -> float:
        """False positive rate must be a finite number in (0, 1)"""
        if not math.isfinite(v) or not 0.0 < v < 1.0:
            raise ValueError(f"target_fp_rate must be in (0, 1), got {v}")
        return v

    @property
    def payload_length(self) -> int:
        """Byte length of the packed bit array that follows the header"""
        return (self.bit_length + 7) // 8

    class Config:
        json_schema_extra = {
            "example": {
                "bit_length": 959,
                "hash_count": 7,
                "expected_items": 100,
                "target_fp_rate": 0.01,
                "inserted_count": 42,
            }
        }


class FilterStats(BaseModel):
    """Read-only diagnostics for a Bloom filter"""

    bit_length: int
    hash_count: int
    expected_items: int
    target_fp_rate: float
    inserted_count: int
    set_bits: int
    fill_ratio: float
    estimated_false_positive_rate: float
    size_bytes: int
    note: str = "Estimates assume distinct inserted elements"
