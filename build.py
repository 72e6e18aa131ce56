"""使用 Nuitka 把 modbreeze 打包为单文件可执行程序"""

import importlib.util
import platform
import subprocess
import sys
from pathlib import Path

from modbreeze import __version__

ENTRY = Path("modbreeze") / "__main__.py"


def output_name() -> str:
    suffix = ".exe" if platform.system() == "Windows" else ".bin"
    return f"modbreeze-{__version__}{suffix}"


def nuitka_command(output: str) -> list:
    return [
        sys.executable,
        "-m",
        "nuitka",
        "--onefile",
        "--assume-yes-for-downloads",
        "--product-name=modbreeze",
        f"--product-version={__version__}",
        f"--output-filename={output}",
        str(ENTRY),
    ]


def build_with_nuitka():
    if importlib.util.find_spec("nuitka") is None:
        sys.exit("未找到 Nuitka，请先安装: pip install -e .[build]")

    output = output_name()
    command = nuitka_command(output)
    print(f"构建 modbreeze {__version__} ({platform.system()})")
    print(subprocess.list2cmdline(command))

    try:
        subprocess.run(command, check=True)
    except subprocess.CalledProcessError as e:
        sys.exit(f"Nuitka 构建失败 (返回码 {e.returncode})")

    print(f"已生成 {Path.cwd() / output}")


if __name__ == "__main__":
    build_with_nuitka()
