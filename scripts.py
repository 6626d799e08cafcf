from pathlib import Path
from subprocess import CalledProcessError, run
import sys


def test(args):
    try:
        run(["flake8", "reactivity", "tests", "bench", "examples"], check=True)
        run(
            ["pytest", "--cov=reactivity", "--cov-report=term-missing"] + args,
            check=True,
        )
    except CalledProcessError:
        sys.exit(1)


def bench(args):
    try:
        run(["pytest", "bench", "--benchmark-only"] + args, check=True)
    except CalledProcessError:
        sys.exit(1)


def main():
    cmd = Path(sys.argv[0]).stem
    if cmd.endswith("test"):
        test(sys.argv[1:])
    elif cmd.endswith("bench"):
        bench(sys.argv[1:])
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
