"""
Schemas - Freeze List
File: freeze_list.py

Purpose: Snapshot of the on-chain freeze list as returned by the
chain-state reconciler.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Well-known mapping names and keys of the freeze list registry
FREEZE_LIST_INDEX_MAPPING = "freeze_list_index"
FREEZE_LIST_LAST_INDEX_MAPPING = "freeze_list_last_index"
FREEZE_LIST_ROOT_MAPPING = "freeze_list_root"
ROOT_UPDATED_HEIGHT_MAPPING = "root_updated_height"
BLOCK_HEIGHT_WINDOW_MAPPING = "block_height_window"

CURRENT_ROOT_KEY = "1u8"
PREVIOUS_ROOT_KEY = "2u8"
SINGLETON_KEY = "true"


def slot_key(index: int) -> str:
    """Mapping key of a freeze_list_index slot."""
    return f"{index}u32"


class FreezeListSnapshot(BaseModel):
    """
    Freeze list as observed on-chain at one point in time.

    addresses keeps on-chain slot order (not sorted) and never contains
    the zero-address sentinel. last_index is the slot at which the walk
    stopped, i.e. the number of slots read.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    program_id: str = Field(
        ...,
        description="Freeze list registry program",
        min_length=1,
    )
    addresses: tuple[str, ...] = Field(
        default=(),
        description="Frozen addresses in slot order, sentinel removed",
    )
    last_index: int = Field(
        ...,
        description="Slot index where the paginated walk stopped",
        ge=0,
    )
    current_root: int = Field(
        ...,
        description="freeze_list_root[1u8]",
        ge=0,
    )
    previous_root: Optional[int] = Field(
        default=None,
        description="freeze_list_root[2u8], accepted during the staleness window",
    )
    reported_last_index: Optional[int] = Field(
        default=None,
        description="freeze_list_last_index[true] as stored on-chain",
    )
    root_updated_height: Optional[int] = Field(
        default=None,
        description="Block height of the last root rotation",
    )
    block_height_window: Optional[int] = Field(
        default=None,
        description="Blocks during which the previous root stays valid",
    )

    def previous_root_valid_at(self, height: int) -> bool:
        """
        Whether the previous root would still be accepted at `height`.

        Informational only; the chain enforces the window.
        """
        if self.previous_root is None:
            return False
        if self.root_updated_height is None or self.block_height_window is None:
            return False
        return height <= self.root_updated_height + self.block_height_window

    def accepted_roots(self, height: Optional[int] = None) -> list[int]:
        """Roots a proof may target: current, plus previous while in window."""
        roots = [self.current_root]
        if height is not None and self.previous_root_valid_at(height):
            roots.append(self.previous_root)
        return roots
