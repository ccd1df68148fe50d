import numpy as np

from patchfill.cli.batch_process import build_parser, main, process_folder


def _fill_folder(folder, encode_png, count=3):
    folder.mkdir()
    rng = np.random.default_rng(5)
    for i in range(count):
        pixels = rng.integers(0, 256, size=(60, 90, 3), dtype=np.uint8)
        (folder / f"shot{i}.png").write_bytes(encode_png(pixels))


def test_batch_writes_clean_copies(tmp_path, encode_png):
    src, dst = tmp_path / "in", tmp_path / "out"
    _fill_folder(src, encode_png)
    (src / "readme.txt").write_text("skip me")

    assert main([str(src), str(dst), "--passes", "1", "--feather", "3"]) == 0
    assert sorted(p.name for p in dst.iterdir()) == ["shot0-clean.png", "shot1-clean.png", "shot2-clean.png"]


def test_batch_format_override(tmp_path, encode_png):
    src, dst = tmp_path / "in", tmp_path / "out"
    _fill_folder(src, encode_png, count=1)

    assert main([str(src), str(dst), "--format", "webp", "--quality", "60"]) == 0
    assert (dst / "shot0-clean.webp").read_bytes()[:4] == b"RIFF"


def test_corrupt_file_is_counted_and_skipped(tmp_path, encode_png, image_service):
    src, dst = tmp_path / "in", tmp_path / "out"
    _fill_folder(src, encode_png, count=2)
    (src / "broken.png").write_bytes(b"\x89PNG garbage")

    args = build_parser().parse_args([str(src), str(dst)])
    assert process_folder(args, image_service) == (2, 1)
    assert main([str(src), str(dst)]) == 1


def test_area_too_small_fails_every_file(tmp_path, encode_png):
    src, dst = tmp_path / "in", tmp_path / "out"
    _fill_folder(src, encode_png, count=2)

    args = build_parser().parse_args([str(src), str(dst), "--width", "2"])
    assert process_folder(args) == (0, 2)


def test_missing_source_folder(tmp_path):
    assert main([str(tmp_path / "nope"), str(tmp_path / "out")]) == 2


def test_recursive_run_mirrors_subfolders(tmp_path, encode_png, noise_buffer):
    src, dst = tmp_path / "in", tmp_path / "out"
    (src / "sub").mkdir(parents=True)
    (src / "x.png").write_bytes(encode_png(noise_buffer))
    (src / "sub" / "x.png").write_bytes(encode_png(noise_buffer[::-1].copy()))

    args = build_parser().parse_args([str(src), str(dst), "--recursive"])
    assert process_folder(args) == (2, 0)
    assert (dst / "x-clean.png").is_file()
    assert (dst / "sub" / "x-clean.png").is_file()
    assert (dst / "x-clean.png").read_bytes() != (dst / "sub" / "x-clean.png").read_bytes()


def test_outputs_with_the_same_name_are_not_overwritten(tmp_path, encode_png, noise_buffer):
    src, dst = tmp_path / "in", tmp_path / "out"
    _fill_folder(src, encode_png, count=1)
    (src / "shot0.webp").write_bytes((src / "shot0.png").read_bytes())

    args = build_parser().parse_args([str(src), str(dst), "--format", "png"])
    assert process_folder(args) == (1, 1)
    assert [p.name for p in dst.iterdir()] == ["shot0-clean.png"]
