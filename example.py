#!/usr/bin/env python3
"""
Example usage of the termlife package without a terminal session.
"""

from termlife import Grid


def main():
    """Demonstrate programmatic usage of the termlife package."""
    # A glider on an otherwise empty 8x8 grid
    grid = Grid.from_text(
        "01000000\n"
        "00100000\n"
        "11100000\n"
        "00000000\n"
        "00000000\n"
        "00000000\n"
        "00000000\n"
        "00000000\n"
    )
    grid.save_state()

    print("Initial state:")
    print(grid)
    print(f"Population: {grid.population}")
    print()

    for _ in range(4):
        grid.step()
        print(f"Generation {grid.generation}:")
        print(grid)
        print()

    # Back to the snapshot and out to disk
    grid.load_state()
    grid.save_to_file("glider.data")
    print("Saved initial glider to glider.data")


if __name__ == "__main__":
    main()
