"""
Split catalog: the fixed muscle-group pairings a daily workout can be built from
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict

from tracker.errors import InvalidSplitKey


class SplitKey(str, Enum):
    CHEST_TRI = "CHEST_TRI"
    BACK_BI = "BACK_BI"
    LEGS_SHO = "LEGS_SHO"


class Split(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: SplitKey
    name: str
    # muscle group -> maximum number of exercises picked for it, in pick order
    caps: Dict[str, int]

    @property
    def muscle_groups(self) -> List[str]:
        return list(self.caps)


SPLITS: Dict[SplitKey, Split] = {
    SplitKey.CHEST_TRI: Split(
        key=SplitKey.CHEST_TRI, name="Chest & Triceps", caps={"Chest": 3, "Triceps": 2}
    ),
    SplitKey.BACK_BI: Split(
        key=SplitKey.BACK_BI, name="Back & Biceps", caps={"Back": 3, "Biceps": 2}
    ),
    SplitKey.LEGS_SHO: Split(
        key=SplitKey.LEGS_SHO, name="Legs & Shoulders", caps={"Legs": 3, "Shoulders": 2}
    ),
}


def get_split(split_key) -> Split:
    try:
        return SPLITS[SplitKey(split_key)]
    except ValueError:
        raise InvalidSplitKey(split_key) from None


def list_splits() -> List[Split]:
    return list(SPLITS.values())
