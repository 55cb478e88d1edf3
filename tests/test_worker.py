import pytest
from PIL import Image

from store_asset_studio.worker import render_batch, render_worker


def _job(index, path, out_dir, **extra):
    args = {
        "index": index,
        "path": str(path),
        "asset_id": "icon",
        "width": 128,
        "height": 128,
        "output_root": str(out_dir),
    }
    args.update(extra)
    return args


def test_render_worker_with_crop(tmp_path, pattern_image):
    src = tmp_path / "src.png"
    pattern_image(300, 200).save(src)
    result = render_worker(_job(3, src, tmp_path / "out", crop=[50, 0, 200, 200], rotation=0))
    assert result["success"], result
    assert result["index"] == 3
    with Image.open(result["output"]) as img:
        assert img.size == (128, 128)
        assert img.mode == "RGBA"
    assert result["output"].endswith("chrome-icon-128x128.png")


def test_render_worker_with_viewport(tmp_path, pattern_image):
    src = tmp_path / "src.jpg"
    pattern_image(300, 200).save(src)
    result = render_worker(_job(0, src, tmp_path, viewport={"zoom": 2.0, "rotation": 30}))
    assert result["success"], result
    with Image.open(result["output"]) as img:
        assert img.size == (128, 128)


def test_render_worker_reports_failure(tmp_path, pattern_image):
    src = tmp_path / "src.png"
    pattern_image(50, 50).save(src)
    bad_crop = render_worker(_job(1, src, tmp_path, crop=[0, 0, 0, 50]))
    assert not bad_crop["success"]
    assert "positive size" in bad_crop["error"]

    missing = render_worker(_job(2, tmp_path / "nope.png", tmp_path, crop=[0, 0, 5, 5]))
    assert not missing["success"]
    assert missing["name"] == "nope.png"


def test_render_batch_keeps_job_order(tmp_path, pattern_image):
    jobs = []
    for i in range(3):
        src = tmp_path / f"src{i}.png"
        pattern_image(100 + i, 100).save(src)
        jobs.append(_job(i, src, tmp_path / "out", crop=[0, 0, 100, 100]))
    jobs.append(_job(3, tmp_path / "missing.png", tmp_path / "out", crop=[0, 0, 10, 10]))

    seen = []
    results = render_batch(jobs, max_workers=2, on_result=seen.append)

    assert [r["index"] for r in results] == [0, 1, 2, 3]
    assert [r["success"] for r in results] == [True, True, True, False]
    assert len(seen) == 4
    # Same asset name each time, so later files get numbered suffixes
    names = sorted(p.name for p in (tmp_path / "out").iterdir())
    assert names == ["chrome-icon-128x128-01.png", "chrome-icon-128x128-02.png", "chrome-icon-128x128.png"]


def test_render_batch_empty():
    assert render_batch([]) == []


def test_render_batch_default_output_root(tmp_path, pattern_image):
    src = tmp_path / "src.png"
    pattern_image(64, 64).save(src)
    job = _job(0, src, tmp_path / "unused", crop=[0, 0, 64, 64])
    del job["output_root"]

    results = render_batch([job], tmp_path / "default", max_workers=1)

    assert results[0]["success"], results[0]
    assert (tmp_path / "default" / "chrome-icon-128x128.png").is_file()


def test_render_batch_requires_output_root(tmp_path):
    job = _job(0, tmp_path / "src.png", tmp_path, crop=[0, 0, 8, 8])
    del job["output_root"]
    with pytest.raises(ValueError):
        render_batch([job])
