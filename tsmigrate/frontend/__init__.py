"""Frontend package - JavaScript source to arena syntax trees."""

from .comments import CommentLinkingPass, CommentMap, clean_comment
from .jsdoc import JsDocInfo, TypeParser, parse_jsdoc
from .modules import CollectModuleMetadata, ModuleRenameLogger, PathUtil
from .parse import parse_file
from .scope import RemoveGoogScopePass

__all__ = [
    "CollectModuleMetadata",
    "CommentLinkingPass",
    "CommentMap",
    "JsDocInfo",
    "ModuleRenameLogger",
    "PathUtil",
    "RemoveGoogScopePass",
    "TypeParser",
    "clean_comment",
    "parse_file",
    "parse_jsdoc",
]
