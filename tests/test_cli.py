"""Tests for the layerframe CLI."""

import tempfile

import pytest
import yaml

from layerframe.cli import main


def _write_manifest(content: dict) -> str:
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(content, f)
    f.close()
    return f.name


def _manifest(**video_overrides):
    video = {"resolution": [100, 100], "reference_resolution": [100, 100], "fps": 10}
    video.update(video_overrides)
    return {
        "video": video,
        "colors": {"red": "#FF0000"},
        "layers": [
            {"type": "shape", "offset": [0, 0], "size": [100, 100], "colors": ["red"]},
            {"type": "text", "offset": [10, 10], "size": [80, 20], "text": "Hi",
             "color": "#FF000000", "line_height": 10},
        ],
    }


class TestCli:
    def test_manifest_is_required(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0

    def test_output_is_required(self):
        with pytest.raises(SystemExit):
            main(["--manifest", _write_manifest(_manifest())])

    def test_both_and_merged_are_exclusive(self):
        with pytest.raises(SystemExit):
            main(["--manifest", _write_manifest(_manifest()), "--output", "/tmp/x", "--both", "--merged"])

    def test_validate_lists_layers(self, capsys):
        main(["--manifest", _write_manifest(_manifest()), "--validate"])
        out = capsys.readouterr().out
        assert "Manifest valid: 2 layers" in out
        assert "Rectangle" in out
        assert "'Hi'" in out

    def test_preview_writes_pngs(self, tmp_path, capsys):
        preview = tmp_path / "previews"
        main(["--manifest", _write_manifest(_manifest()), "--preview", str(preview)])
        assert sorted(p.name for p in preview.iterdir()) == ["layer-00.png", "layer-01.png"]
        assert "anchor=(0.0000, 0.0000)" in capsys.readouterr().out

    def test_missing_audio_exits_nonzero(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--manifest", _write_manifest(_manifest()), "--output", str(tmp_path / "o.mp4")])
        assert exc_info.value.code == 1
        assert "No audio track" in capsys.readouterr().err

    def test_renders_merged_video(self, tmp_path, silent_audio, capsys):
        out = tmp_path / "merged.mp4"
        main([
            "--manifest", _write_manifest(_manifest()),
            "--output", str(out), "--audio", str(silent_audio), "--merged",
        ])
        assert out.exists()
        stdout = capsys.readouterr().out
        assert "(1 overlay(s))" in stdout
        assert "Export progress: 100%" in stdout

    def test_both_variants(self, tmp_path, silent_audio):
        out_dir = tmp_path / "renders"
        main([
            "--manifest", _write_manifest(_manifest(audio=str(silent_audio))),
            "--output", str(out_dir), "--both",
        ])
        assert (out_dir / "separate-output.mp4").exists()
        assert (out_dir / "merged-output.mp4").exists()
