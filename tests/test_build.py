import build
from modbreeze import __version__


def test_output_name_carries_version(monkeypatch):
    monkeypatch.setattr(build.platform, "system", lambda: "Linux")
    assert build.output_name() == f"modbreeze-{__version__}.bin"

    monkeypatch.setattr(build.platform, "system", lambda: "Windows")
    assert build.output_name() == f"modbreeze-{__version__}.exe"


def test_nuitka_command_targets_package_entry():
    command = build.nuitka_command("out.bin")

    assert command[1:3] == ["-m", "nuitka"]
    assert f"--product-version={__version__}" in command
    assert "--output-filename=out.bin" in command
    assert command[-1].endswith("__main__.py")
