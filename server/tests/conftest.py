from pathlib import Path

import pytest


def write_tree(root: Path, files: dict) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def sample_repo(tmp_path: Path) -> Path:
    """
    A small mixed-language repository with ignore rules and excluded dirs.
    """
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    write_tree(
        root,
        {
            ".gitignore": "*.log\n/generated\n",
            "src/main.rs": (
                "// entry point\n"
                "fn main() {\n"
                "    let x = parse(\"1\").unwrap();\n"
                "    if x > 1 && x < 10 {\n"
                "        run(x);\n"
                "    }\n"
                "}\n"
            ),
            "src/lib.rs": "pub fn run(x: i32) {\n    println!(\"{}\", x);\n}\n",
            "web/app.ts": "function start() {\n  if (ready) { go(); }\n}\n",
            "scripts/tool.py": "def main():\n    # go\n    return 1\n",
            "README.md": "# Title\n\nSome text.\n",
            "debug.log": "noise\n",
            "generated/out.rs": "fn gen() {}\n",
            "target/debug/build.rs": "fn skipped() {}\n",
            "node_modules/pkg/index.js": "function skipped() {}\n",
            ".hidden/secret.rs": "fn hidden() {}\n",
            "empty/.keep": "",
        },
    )
    return root
