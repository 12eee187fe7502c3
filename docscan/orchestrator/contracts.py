from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal, Union

import numpy as np

from docscan.orchestrator.errors import ScanError

Sex = Literal["male", "female", "unspecified"]


class ScanState(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    CAPTURING = "capturing"
    CROPPING = "cropping"
    RECOGNIZING = "recognizing"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class DocumentInfo:
    document_type: str          # e.g. "P" or "PN"
    country_code: str           # issuing state, e.g. "UTO"
    surname: str
    given_names: str
    document_number: str
    nationality: str
    birth_date: date
    sex: Sex
    expiry_date: date
    personal_number: str = ""
    mrz_lines: tuple[str, str] = ("", "")
    # field name -> check digit matched
    checks: dict[str, bool] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return bool(self.checks) and all(self.checks.values())


@dataclass
class BeginScan:
    image: np.ndarray           # cropped frame about to be recognized


@dataclass
class Finished:
    info: DocumentInfo


@dataclass
class Failed:
    error: ScanError


Outcome = Union[BeginScan, Finished, Failed]

