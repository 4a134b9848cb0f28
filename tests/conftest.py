import pytest


@pytest.fixture
def tree(tmp_path):
    """
    root/
        f1 (10 bytes)
        .hidden (3 bytes)
        a/
            f2 (20 bytes)
            f3 (30 bytes)
            x/
                f4 (40 bytes)
        b/
            y/
                f5 (50 bytes)
    """
    root = tmp_path / "root"
    (root / "a" / "x").mkdir(parents=True)
    (root / "b" / "y").mkdir(parents=True)
    for rel, size in (
        ("f1", 10),
        (".hidden", 3),
        ("a/f2", 20),
        ("a/f3", 30),
        ("a/x/f4", 40),
        ("b/y/f5", 50),
    ):
        (root / rel).write_bytes(b"x" * size)
    return root
