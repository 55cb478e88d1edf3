"""
Batch render worker for parallel export (Qt-free).

``render_worker`` is imported in child processes spawned by
``concurrent.futures.ProcessPoolExecutor``, so its arguments and results
are plain picklable dicts.  Each job decodes one source file, rasterizes
one crop and writes one PNG.
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

from store_asset_studio.image_io import load_source_image, output_file_name, write_raster
from store_asset_studio.models import CropRegion, OutputSpec, Viewport
from store_asset_studio.rasterizer import rasterize
from store_asset_studio.viewport import crop_region_for

logger = logging.getLogger(__name__)


def render_worker(args: dict) -> dict:
    """Worker function for parallel rendering. Runs in a separate process.

    ``args`` keys: ``index``, ``path``, ``asset_id``, ``width``, ``height``,
    ``output_root`` and either ``crop`` (``[x, y, w, h]`` in displayed
    pixels, with ``rotation``) or ``viewport`` (dict of Viewport fields).
    Failures are reported in the result rather than raised so one bad
    file does not abort the batch.
    """
    idx = args["index"]
    src_path = Path(args["path"])
    spec = OutputSpec(args["width"], args["height"])

    try:
        source = load_source_image(src_path)
        try:
            if args.get("viewport") is not None:
                viewport = Viewport(**args["viewport"])
                region = crop_region_for(source.width, source.height, viewport, spec.aspect_ratio)
                rotation = viewport.rotation
            else:
                region = CropRegion.from_tuple(args["crop"])
                rotation = args.get("rotation", 0.0)

            with rasterize(source, rotation, region, spec.width, spec.height) as raster:
                out_path = write_raster(
                    raster, args["output_root"], output_file_name(args["asset_id"], spec),
                )
        finally:
            source.close()

        return {"index": idx, "success": True, "name": src_path.name, "output": str(out_path)}
    except Exception as e:
        return {"index": idx, "success": False, "name": src_path.name, "error": str(e)}


def render_batch(jobs: list[dict], output_root=None, max_workers: int | None = None,
                 on_result=None) -> list[dict]:
    """Run ``render_worker`` over *jobs* in a process pool.

    *output_root* is used for every job that does not name its own.
    Results are returned in job order.  *on_result* is called with each
    result as it completes (e.g. to drive a progress display).
    """
    if not jobs:
        return []
    args_list = []
    for args in jobs:
        if args.get("output_root") is None:
            if output_root is None:
                raise ValueError(f"Job {args['index']} has no output_root and no default was given")
            args = {**args, "output_root": str(output_root)}
        args_list.append(args)

    workers = max_workers or max(1, (os.cpu_count() or 4) - 1)
    results: dict[int, dict] = {}

    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(render_worker, args): args["index"] for args in args_list}
        for future in as_completed(futures):
            result = future.result()
            results[futures[future]] = result
            if not result["success"]:
                logger.warning("Render failed for %s: %s", result["name"], result["error"])
            if on_result is not None:
                on_result(result)

    failed = sum(1 for r in results.values() if not r["success"])
    logger.info("Batch complete: %d/%d rendered", len(jobs) - failed, len(jobs))
    return [results[args["index"]] for args in jobs]
