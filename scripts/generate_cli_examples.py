from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--mode", "plane", "--x-res", "160", "--y-res", "160"]


@dataclass
class Expected:
    path: Path


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return ["python", "explore.py", *self.args, "--output", str(EXAMPLES_ROOT / self.name)]


def _plane(name: str, *args: str) -> Example:
    return Example(
        name=name,
        args=[*BASE_ARGS, *args],
        expected=[Expected(EXAMPLES_ROOT / name / "plane.png")],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _plane("fractal", "--fractal", "julia"),
    _plane("levels", "--levels", "32"),
    _plane("limit", "--levels", "32", "--limit", "12"),
    _plane("color-model", "--color-model", "gradient"),
    _plane("color1", "--color-model", "binary", "--color1", "#0a3ba0"),
    _plane("color2", "--color-model", "binary", "--color2", "orange"),
    _plane("cr", "--fractal", "julia", "--cr", "-0.8"),
    _plane("ci", "--fractal", "julia", "--cr", "-0.8", "--ci", "0.156"),
    _plane("frame", "--frame", "-0.8", "-0.2", "0.4", "0.4"),
    _plane("frame-zoom", "--frame-zoom", "2", "--zooms", "1"),
    _plane("zoom", "--frame-zoom", "2", "--zoom", "out", "--zooms", "1"),
    _plane("select", "--frame-zoom", "3", "--select", "0.3", "0.6", "--zooms", "2"),
    _plane("x-res", "--x-res", "240"),
    _plane("y-res", "--y-res", "96"),
    _plane("verbose", "--verbose"),
    Example(
        name="format",
        args=[*BASE_ARGS, "--format", "webp"],
        expected=[Expected(EXAMPLES_ROOT / "format" / "plane.webp")],
        clean=[EXAMPLES_ROOT / "format"],
    ),
    Example(
        name="landscape",
        args=["--mode", "landscape", "--resolution", "120"],
        expected=[
            Expected(EXAMPLES_ROOT / "landscape" / "landscape_height.png"),
            Expected(EXAMPLES_ROOT / "landscape" / "landscape_color.png"),
            Expected(EXAMPLES_ROOT / "landscape" / "landscape.npz"),
        ],
        clean=[EXAMPLES_ROOT / "landscape"],
    ),
    Example(
        name="zscale",
        args=["--mode", "landscape", "--resolution", "120", "--zscale", "0.5"],
        expected=[Expected(EXAMPLES_ROOT / "zscale" / "landscape_height.png")],
        clean=[EXAMPLES_ROOT / "zscale"],
    ),
    Example(
        name="invert",
        args=["--mode", "landscape", "--resolution", "120", "--invert"],
        expected=[Expected(EXAMPLES_ROOT / "invert" / "landscape_height.png")],
        clean=[EXAMPLES_ROOT / "invert"],
    ),
    Example(
        name="shader",
        args=["--mode", "shader", "--fractal", "julia"],
        expected=[
            Expected(EXAMPLES_ROOT / "shader" / "julia.frag"),
            Expected(EXAMPLES_ROOT / "shader" / "julia.vert"),
        ],
        clean=[EXAMPLES_ROOT / "shader"],
    ),
    Example(
        name="gif",
        args=[*BASE_ARGS, "--mode", "gif", "--frame-zoom", "2", "--zooms", "4", "--gif-frame-duration", "0.2"],
        expected=[Expected(EXAMPLES_ROOT / "gif" / "zoom.gif")],
        clean=[EXAMPLES_ROOT / "gif"],
    ),
    Example(
        name="orbit",
        args=["--mode", "orbit", "--orbit-c", "-0.5", "0.5", "--orbit-iterations", "20"],
        expected=[Expected(EXAMPLES_ROOT / "orbit" / "orbit.csv")],
        clean=[EXAMPLES_ROOT / "orbit"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
