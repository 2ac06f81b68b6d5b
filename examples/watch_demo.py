#!/usr/bin/env python3
"""
Directory and file watcher demo.

This example demonstrates:
1. watch() - recursive directory watching with debounced, coalesced events
2. on_change() - single-file watching that only reports content changes

Usage:
    pip install -e .
    python examples/watch_demo.py

The demo will:
- Create a temporary directory structure
- Start a directory watcher and a file watcher
- Create/modify/move/delete files and directories
- Show events being received
- Clean up
"""

import logging
import shutil
import tempfile
import time
from pathlib import Path

from dirwatch import Action, Event, on_change, watch

ACTION_ICONS = {
    Action.INIT: "🚀",
    Action.CREATE: "➕",
    Action.DELETE: "❌",
    Action.MODIFY: "📝",
}


def print_event(event: Event) -> None:
    icons = "".join(ACTION_ICONS[action] for action in sorted(event.actions, key=lambda a: a.value))
    names = ", ".join(sorted(action.value.upper() for action in event.actions))
    print(f"[DIRECTORY] {icons} {names}: {event.path}")


def run_scenario(root: Path, config_file: Path) -> None:
    """Change the filesystem step by step, pausing so each step is its own batch."""
    print("\n[DEMO] Creating files...")
    (root / "hello.txt").write_text("Hello, World!")
    (root / "data.json").write_text('{"key": "value"}')
    time.sleep(0.5)

    print("\n[DEMO] Writing hello.txt three times in a row (one event expected)...")
    for i in range(3):
        (root / "hello.txt").write_text(f"Hello #{i}")
    time.sleep(0.5)

    print("\n[DEMO] Creating subdirectory with a file...")
    subdir = root / "subdir"
    subdir.mkdir()
    time.sleep(0.5)
    (subdir / "nested.txt").write_text("Nested file content")
    time.sleep(0.5)

    print("\n[DEMO] Renaming data.json (delete + create expected)...")
    (root / "data.json").rename(root / "renamed.json")
    time.sleep(1.0)

    print("\n[DEMO] Updating the config file...")
    config_file.write_text("debug = true\n")
    time.sleep(0.5)

    print("\n[DEMO] Removing the subdirectory...")
    shutil.rmtree(subdir)
    time.sleep(0.5)


def main():
    """Run the demo."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    print("=" * 60)
    print("dirwatch Demo")
    print("=" * 60)

    demo_dir = Path(tempfile.mkdtemp(prefix="dirwatch_demo_"))
    watched = demo_dir / "watched"
    watched.mkdir()
    config_file = demo_dir / "settings.toml"
    config_file.write_text("debug = false\n")

    print(f"\nDemo directory: {demo_dir}")

    dir_handle = watch(watched, print_event, recursive=True, debounce_ms=100)
    file_handle = on_change(
        config_file,
        lambda: print(f"[FILE] 🔧 {config_file.name} changed: {config_file.read_text().strip()}"),
        debounce_ms=100,
    )

    try:
        time.sleep(0.5)
        run_scenario(watched, config_file)

        print("\n" + "=" * 60)
        print("Demo completed successfully!")
        print("=" * 60)

    except KeyboardInterrupt:
        print("\n\nInterrupted! Stopping watchers...")

    finally:
        dir_handle.cancel()
        file_handle.cancel()
        dir_handle.wait(timeout=5)
        file_handle.wait(timeout=5)

        print(f"\nCleaning up demo directory: {demo_dir}")
        shutil.rmtree(demo_dir, ignore_errors=True)


if __name__ == "__main__":
    main()
