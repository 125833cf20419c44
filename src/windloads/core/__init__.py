"""Core components for windloads"""

from .types import LoadKind, LoadTag, DEFAULT_TAG_MAP, build_tag_map
from .errors import (
    WindLoadsError,
    SourceUnavailable,
    DecodeFailure,
    EmptyCorpus,
    MissingChannel,
    InvalidSampleCount,
    UnsupportedOperation,
)
from .channel import LoadChannel
from .corpus import LoadCorpus
from .source import LoadSource
from .selector import ChannelSelector
from .config_manager import ConfigManager
from .facade import WindLoading

__all__ = [
    'LoadKind',
    'LoadTag',
    'DEFAULT_TAG_MAP',
    'build_tag_map',
    'WindLoadsError',
    'SourceUnavailable',
    'DecodeFailure',
    'EmptyCorpus',
    'MissingChannel',
    'InvalidSampleCount',
    'UnsupportedOperation',
    'LoadChannel',
    'LoadCorpus',
    'LoadSource',
    'ChannelSelector',
    'ConfigManager',
    'WindLoading',
]
