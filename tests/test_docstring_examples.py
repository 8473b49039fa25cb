import ast
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1] / "src" / "safe_js_runner"


def _functions_without_usage_example() -> tuple[list[str], list[str]]:
    undocumented: list[str] = []
    no_example: list[str] = []
    for source in sorted(PACKAGE_ROOT.rglob("*.py")):
        tree = ast.parse(source.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            where = f"{source.relative_to(PACKAGE_ROOT)}:{node.lineno} {node.name}"
            doc = ast.get_docstring(node)
            if not doc:
                undocumented.append(where)
            elif "Example:" not in doc:
                no_example.append(where)
    return undocumented, no_example


def test_every_runner_function_documents_a_usage_example() -> None:
    undocumented, no_example = _functions_without_usage_example()
    assert undocumented == [], "Functions without a docstring:\n" + "\n".join(undocumented)
    assert no_example == [], "Docstrings missing an Example block:\n" + "\n".join(no_example)
