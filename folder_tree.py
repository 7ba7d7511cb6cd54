# folder_tree.py
"""
Folder tree walker.

Drive only answers "children of X", so the full hierarchy under a root is
rebuilt here: every folder reachable from the root is reported with its
ancestor chain (IDs and names, root first), optionally with the files it
holds. The walker depends only on the FolderSource protocol, which both
DriveManager (google-api-python-client) and DriveRestClient (raw REST)
implement.
"""

import logging
from typing import List, Optional, Protocol

import drive_config
from drive_errors import DriveConfigurationError
from tree_models import (
    FileEntry,
    FolderNode,
    FolderRef,
    ParentRef,
    TraversalState,
    TreeAccumulator,
    TreePath,
    TreePathWithFiles,
)
from tree_paths import flatten_file_paths


logger = logging.getLogger(__name__)


class FolderSource(Protocol):
    def get_folder_meta(self, folder_id: str) -> FolderRef:
        ...

    def list_child_folders(self, parent_id: str) -> List[FolderRef]:
        ...

    def list_child_files(self, parent_id: str) -> List[FileEntry]:
        ...


class FolderTreeLister:
    def __init__(self, source: FolderSource, root_id: Optional[str] = None):
        self.source = source
        self.root_id = root_id or drive_config.ROOT_FOLDER_ID

    def _seed(self, folder_id: str) -> TraversalState:
        root = self.source.get_folder_meta(folder_id)
        logger.info("resolved_root_folder", extra={"folder_id": folder_id, "folder_name": root.name})
        return TraversalState(ids=[folder_id], names=[root.name])

    # ------------------------------------------------------------------
    # Folders only
    # ------------------------------------------------------------------
    def get_tree(
        self,
        folder_id: Optional[str] = None,
        state: Optional[TraversalState] = None,
        accumulator: Optional[TreeAccumulator] = None,
    ) -> List[TreePath]:
        """
        Every folder below folder_id (default: the configured root) with its
        ancestor chain. The root itself is not an entry; it only heads each
        chain.
        """
        folder_id = folder_id or self.root_id
        accumulator = accumulator if accumulator is not None else TreeAccumulator()
        state = state if state is not None and not state.is_empty() else self._seed(folder_id)

        self._walk(folder_id, state, accumulator)

        logger.info("tree_walk_completed", extra={"folder_id": folder_id, "count": len(accumulator)})
        return accumulator.tree_paths()

    def _walk(self, folder_id: str, state: TraversalState, accumulator: TreeAccumulator) -> None:
        children = []
        for child in self.source.list_child_folders(folder_id):
            chain = state.extended(child.id, child.name)
            children.append(FolderNode(id=child.id, tree_ids=chain.ids, tree_names=chain.names))

        if not children:
            return

        # the whole level goes in before any child is expanded
        accumulator.extend(children)
        for node in children:
            self._walk(node.id, TraversalState(node.tree_ids, node.tree_names), accumulator)

    # ------------------------------------------------------------------
    # Folders with their files
    # ------------------------------------------------------------------
    def get_tree_with_files(
        self,
        folder_id: Optional[str] = None,
        state: Optional[TraversalState] = None,
        accumulator: Optional[TreeAccumulator] = None,
    ) -> List[TreePathWithFiles]:
        """
        Like get_tree, but each folder carries its direct files, and a walk
        that starts from an unresolved root reports the root as its first
        entry.
        """
        folder_id = folder_id or self.root_id
        accumulator = accumulator if accumulator is not None else TreeAccumulator()

        if state is None or state.is_empty():
            state = self._seed(folder_id)
            accumulator.append(
                FolderNode(
                    id=folder_id,
                    tree_ids=list(state.ids),
                    tree_names=list(state.names),
                    parent=ParentRef(folder_id=folder_id, folder_name=state.names[-1]),
                    file_list=self.source.list_child_files(folder_id),
                )
            )

        self._walk_with_files(folder_id, state, accumulator)

        logger.info(
            "tree_with_files_walk_completed",
            extra={"folder_id": folder_id, "count": len(accumulator)},
        )
        return accumulator.tree_paths_with_files()

    def _walk_with_files(
        self, folder_id: str, state: TraversalState, accumulator: TreeAccumulator
    ) -> None:
        children = []
        for child in self.source.list_child_folders(folder_id):
            chain = state.extended(child.id, child.name)
            children.append(
                FolderNode(
                    id=child.id,
                    tree_ids=chain.ids,
                    tree_names=chain.names,
                    parent=ParentRef(folder_id=child.id, folder_name=child.name),
                    file_list=self.source.list_child_files(child.id),
                )
            )

        if not children:
            return

        accumulator.extend(children)
        for node in children:
            self._walk_with_files(
                node.id, TraversalState(node.tree_ids, node.tree_names), accumulator
            )

    # ------------------------------------------------------------------
    # Flat file paths
    # ------------------------------------------------------------------
    def get_filename_with_path(self, delimiter: str = "/") -> List[str]:
        """Full path of every file under the configured root, joined with delimiter."""
        return flatten_file_paths(self.get_tree_with_files(), delimiter)


def create_folder_tree(
    backend: Optional[str] = None,
    root_id: Optional[str] = None,
    **source_options,
) -> FolderTreeLister:
    """
    Build a lister over the sdk (DriveManager) or rest (DriveRestClient)
    backend; extra keyword arguments go to the backend constructor.
    """
    try:
        name = drive_config.validate_backend(backend or drive_config.BACKEND)
    except ValueError as exc:
        raise DriveConfigurationError(str(exc)) from exc

    if name == "sdk":
        from drive_service import DriveManager

        source = DriveManager(**source_options)
    else:
        from drive_rest import DriveRestClient

        source = DriveRestClient(**source_options)

    logger.info("folder_tree_backend_selected", extra={"backend": name})
    return FolderTreeLister(source, root_id=root_id)
