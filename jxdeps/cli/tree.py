"""Tree command: render the locked dependency forest."""

import logging

from rich.tree import Tree

from jxdeps.cli.common import EXIT_OK, console, project_dir, project_settings, report_error
from jxdeps.errors import JxDepsError
from jxdeps.lock import LockStore
from jxdeps.model import TreeNode
from jxdeps.pipeline import lock_path_for

logger = logging.getLogger("jxdeps.cli.tree")


def _label(node: TreeNode) -> str:
    scope = node.dependency.scope.value if node.dependency is not None else "?"
    label = f"{node.key} [dim]({scope})[/dim]"
    if node.repeated:
        label += " [dim](*)[/dim]"
    return label


def _add(branch: Tree, node: TreeNode) -> None:
    child = branch.add(_label(node))
    for grandchild in node.children:
        _add(child, grandchild)


def render_tree(store: LockStore, title: str) -> Tree:
    root = Tree(title)
    for node in store.dependency_tree():
        _add(root, node)
    return root


def tree_command(args) -> int:
    try:
        settings = project_settings(args)
        lock_path = lock_path_for(project_dir(args), settings)
        store = LockStore.load(lock_path)
    except JxDepsError as exc:
        return report_error(exc)

    if not len(store):
        console.print("No dependencies locked; run 'jxdeps resolve' first.")
        return EXIT_OK

    console.print(render_tree(store, lock_path.name), highlight=False)
    console.print("[dim](*) already shown above[/dim]")
    return EXIT_OK
