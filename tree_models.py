# tree_models.py
"""
Pydantic models for Drive folder trees.

Attributes are snake_case; `to_dict()` emits the camelCase shape
(treeIds, treeNames, parent.folderId, fileList[].mimeType) used in JSON output.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class FolderRef(_AliasedModel):
    """A folder as reported by a backend listing or metadata lookup."""

    id: str
    name: str


class FileEntry(_AliasedModel):
    name: str
    id: str
    mime_type: str = Field(default="", alias="mimeType")


class ParentRef(_AliasedModel):
    folder_id: str = Field(..., alias="folderId")
    folder_name: str = Field(..., alias="folderName")


class TreePath(_AliasedModel):
    """Ancestor chain of one folder, root first, the folder itself last."""

    tree_ids: List[str] = Field(..., alias="treeIds")
    tree_names: List[str] = Field(..., alias="treeNames")

    @model_validator(mode="after")
    def check_chain(self) -> "TreePath":
        if not self.tree_ids:
            raise ValueError("treeIds must contain at least the root folder")
        if len(self.tree_ids) != len(self.tree_names):
            raise ValueError(
                f"treeIds and treeNames differ in length "
                f"({len(self.tree_ids)} != {len(self.tree_names)})"
            )
        return self


class TreePathWithFiles(TreePath):
    parent: ParentRef
    file_list: List[FileEntry] = Field(default_factory=list, alias="fileList")


@dataclass
class FolderNode:
    """A visited folder as held in the accumulator during a walk."""

    id: str
    tree_ids: List[str]
    tree_names: List[str]
    parent: Optional[ParentRef] = None
    file_list: Optional[List[FileEntry]] = None

    def as_tree_path(self) -> TreePath:
        return TreePath(tree_ids=list(self.tree_ids), tree_names=list(self.tree_names))

    def as_tree_path_with_files(self) -> TreePathWithFiles:
        return TreePathWithFiles(
            tree_ids=list(self.tree_ids),
            tree_names=list(self.tree_names),
            parent=self.parent,
            file_list=list(self.file_list or []),
        )


@dataclass
class TraversalState:
    """Ancestor chain handed down one recursion level."""

    ids: List[str] = field(default_factory=list)
    names: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.ids

    def extended(self, folder_id: str, folder_name: str) -> "TraversalState":
        # always new lists; siblings must never share a chain
        return TraversalState(ids=[*self.ids, folder_id], names=[*self.names, folder_name])


class TreeAccumulator:
    """Ordered collection of every folder discovered during one top-level walk."""

    def __init__(self) -> None:
        self.nodes: List[FolderNode] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def extend(self, nodes: List[FolderNode]) -> None:
        self.nodes.extend(nodes)

    def append(self, node: FolderNode) -> None:
        self.nodes.append(node)

    def tree_paths(self) -> List[TreePath]:
        return [node.as_tree_path() for node in self.nodes]

    def tree_paths_with_files(self) -> List[TreePathWithFiles]:
        return [node.as_tree_path_with_files() for node in self.nodes]
