from unittest.mock import patch, Mock

import pytest

from thumbsheet.errors import CaptureFailure, InvalidInput
from thumbsheet.thumbsheet import main
from thumbsheet import thumbsheet


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    monkeypatch.setattr(thumbsheet, "DEFAULT_CONFIG_FILE", str(tmp_path / "thumbsheet.conf"))


def run_main(*argv):
    with patch("sys.argv", ["thumbsheet"] + list(argv)):
        main()


@patch("thumbsheet.thumbsheet.process_file")
def test_main_processes_each_file(mocked_process_file):
    run_main("a.mp4", "b.mp4", "-g", "2x2")

    assert [c[0][0] for c in mocked_process_file.call_args_list] == ["a.mp4", "b.mp4"]
    args = mocked_process_file.call_args[0][1]
    assert args.grid == thumbsheet.Grid(2, 2)
    assert args.thumb_width == 640


@patch("thumbsheet.thumbsheet.process_file")
def test_main_error_exits(mocked_process_file, capsys):
    mocked_process_file.side_effect = CaptureFailure("ffmpeg exited with status 1")

    with pytest.raises(SystemExit) as e:
        run_main("a.mp4", "b.mp4")

    assert e.value.code != 0
    assert "[ERROR] ffmpeg exited with status 1" in capsys.readouterr().err
    assert mocked_process_file.call_count == 1


@patch("thumbsheet.thumbsheet.process_file")
def test_main_ignore_errors(mocked_process_file, capsys):
    mocked_process_file.side_effect = [InvalidInput("no duration"), OSError("disk full"), None]

    run_main("a.mp4", "b.mp4", "c.mp4", "--ignore-errors")

    assert mocked_process_file.call_count == 3
    err = capsys.readouterr().err
    assert "[WARN] failed to process a.mp4 ... skipping: no duration" in err
    assert "[WARN] failed to process b.mp4 ... skipping: disk full" in err
    assert "c.mp4" not in err


@patch("thumbsheet.thumbsheet.process_file")
def test_main_unexpected_error_without_ignore(mocked_process_file):
    mocked_process_file.side_effect = OSError("disk full")

    pytest.raises(OSError, run_main, "a.mp4")


@patch("thumbsheet.thumbsheet.load_font")
@patch("thumbsheet.thumbsheet.MediaCapture")
@patch("thumbsheet.thumbsheet.MediaInfo")
def test_main_skips_missing_template(mocked_MediaInfo, mocked_MediaCapture, mocked_load_font, tmp_path, capsys):
    mocked_MediaInfo.return_value = Mock(width=1920, height=1080, duration_seconds=10.0, avg_frame_rate="25/1")
    template = str(tmp_path / "missing.j2")

    run_main("a.mp4", "b.mp4", "-g", "4x2", "--ignore-errors", "--font-file", "x.ttf", "--template", template)

    err = capsys.readouterr().err
    assert err.count("[WARN] failed to process") == 2
    assert "missing.j2" in err
    mocked_MediaCapture.return_value.capture.assert_not_called()


@patch("thumbsheet.thumbsheet.process_file")
def test_main_rejects_quiet_and_verbose(mocked_process_file, capsys):
    with pytest.raises(SystemExit) as e:
        run_main("a.mp4", "-q", "-v")

    assert e.value.code == 2
    assert "--quiet and --verbose" in capsys.readouterr().err
    mocked_process_file.assert_not_called()


@patch("thumbsheet.thumbsheet.process_file")
def test_main_stdout_accepts_one_file(mocked_process_file, capsys):
    with pytest.raises(SystemExit) as e:
        run_main("a.mp4", "b.mp4", "-o", "-")

    assert e.value.code == 2
    assert "only one file" in capsys.readouterr().err
    mocked_process_file.assert_not_called()


@patch("thumbsheet.thumbsheet.process_file")
def test_main_requires_filenames(mocked_process_file):
    with pytest.raises(SystemExit) as e:
        run_main()

    assert e.value.code == 2
    mocked_process_file.assert_not_called()


@patch("thumbsheet.thumbsheet.print_template_attributes")
@patch("thumbsheet.thumbsheet.process_file")
def test_main_list_template_attributes(mocked_process_file, mocked_print_template_attributes):
    with pytest.raises(SystemExit) as e:
        run_main("--list-template-attributes")

    assert e.value.code == 0
    mocked_print_template_attributes.assert_called_once_with()
    mocked_process_file.assert_not_called()


@patch("thumbsheet.thumbsheet.process_file")
def test_main_missing_config_file(mocked_process_file, tmp_path, capsys):
    config_file = str(tmp_path / "nowhere.conf")

    with pytest.raises(SystemExit) as e:
        run_main("a.mp4", "-c", config_file)

    assert e.value.code != 0
    assert "[ERROR] Could not find config file: {}".format(config_file) in capsys.readouterr().err
    mocked_process_file.assert_not_called()
