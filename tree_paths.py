# tree_paths.py

from typing import Iterable, List

from tree_models import TreePathWithFiles


def flatten_file_paths(nodes: Iterable[TreePathWithFiles], delimiter: str = "/") -> List[str]:
    """Full path of every file, folder by folder, in traversal order."""
    paths: List[str] = []
    for node in nodes:
        folder_path = delimiter.join(node.tree_names)
        paths.extend(f"{folder_path}{delimiter}{entry.name}" for entry in node.file_list)
    return paths
