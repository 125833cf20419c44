"""
Channel and tag vocabulary for windloads

Defines the closed set of load channels found in a CFD bundle, the tags a
selection is emitted under, and the explicit lookup table between the two.
"""

from enum import Enum
from typing import Dict, Hashable, List, Mapping, Optional


# Degrees of freedom of one attachment node: 3 forces then 3 moments
COMPONENTS = ('Fx', 'Fy', 'Fz', 'Mx', 'My', 'Mz')
NODE_WIDTH = len(COMPONENTS)


class LoadKind(Enum):
    """Structural attachment points carrying wind loads.

    The enum value is the exact channel name used in the serialized bundle.
    Member order is the canonical corpus order.
    """

    TOP_END = 'OSS_TopEnd_6F'
    TRUSS = 'OSS_Truss_6F'
    GIR = 'OSS_GIR_6F'
    CRING = 'OSS_CRING_6F'
    M1_CELL = 'OSS_Cell_lcl_6F'
    M1_SEGMENTS = 'OSS_M1_lcl_6F'
    M2_SEGMENTS = 'MC_M2_lcl_force_6F'
    MIRROR_COVERS = 'OSS_mirrorCovers_6F'

    @classmethod
    def bundle_names(cls) -> List[str]:
        """Return the bundle channel names in canonical order."""
        return [kind.value for kind in cls]

    @classmethod
    def from_name(cls, name: str) -> Optional['LoadKind']:
        """Return the kind for a bundle name, or None if the name is unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


class LoadTag(Enum):
    """Simulation inputs a selected channel is delivered to.

    MCM2TE6F and MCM2RB6F are the adaptive secondary mirror (ASM) inputs:
    they receive the top-end and M2 segment loads respectively.
    """

    OSS_TOP_END_6F = 'OSSTopEnd6F'
    OSS_TRUSS_6F = 'OSSTruss6F'
    OSS_GIR_6F = 'OSSGIR6F'
    OSS_CRING_6F = 'OSSCRING6F'
    OSS_CELL_LCL_6F = 'OSSCellLcl6F'
    OSS_M1_LCL_6F = 'OSSM1Lcl6F'
    MC_M2_LCL_FORCE_6F = 'MCM2LclForce6F'
    OSS_MIRROR_COVERS_6F = 'OSSMirrorCovers6F'
    MC_M2_TE_6F = 'MCM2TE6F'
    MC_M2_RB_6F = 'MCM2RB6F'


TAG_CHANNELS: Dict[LoadTag, LoadKind] = {
    LoadTag.OSS_TOP_END_6F: LoadKind.TOP_END,
    LoadTag.OSS_TRUSS_6F: LoadKind.TRUSS,
    LoadTag.OSS_GIR_6F: LoadKind.GIR,
    LoadTag.OSS_CRING_6F: LoadKind.CRING,
    LoadTag.OSS_CELL_LCL_6F: LoadKind.M1_CELL,
    LoadTag.OSS_M1_LCL_6F: LoadKind.M1_SEGMENTS,
    LoadTag.MC_M2_LCL_FORCE_6F: LoadKind.M2_SEGMENTS,
    LoadTag.OSS_MIRROR_COVERS_6F: LoadKind.MIRROR_COVERS,
    LoadTag.MC_M2_TE_6F: LoadKind.TOP_END,
    LoadTag.MC_M2_RB_6F: LoadKind.M2_SEGMENTS,
}


def build_tag_map(extra: Optional[Mapping[Hashable, LoadKind]] = None) -> Dict[Hashable, LoadKind]:
    """Build the key -> channel lookup table used by ChannelSelector.

    The table resolves LoadKind members, bundle names, LoadTag members and
    tag names. Entries in ``extra`` are added last and win on collision.

    Args:
        extra: Additional keys, e.g. FEM input names of a host simulation

    Returns:
        Dictionary from hashable key to LoadKind

    Example:
        >>> tag_map = build_tag_map({'CFD2021106F': LoadKind.TOP_END})
        >>> tag_map['OSSTruss6F']
        <LoadKind.TRUSS: 'OSS_Truss_6F'>
    """
    tag_map: Dict[Hashable, LoadKind] = {}
    for kind in LoadKind:
        tag_map[kind] = kind
        tag_map[kind.value] = kind
    for tag, kind in TAG_CHANNELS.items():
        tag_map[tag] = kind
        tag_map[tag.value] = kind
    if extra:
        tag_map.update(extra)
    return tag_map


DEFAULT_TAG_MAP: Mapping[Hashable, LoadKind] = build_tag_map()
