import argparse
import asyncio
import os

from backend.app.config import settings
from backend.app.logging_config import setup_logging
from mockup.io_types import PrintArea
from mockup.pipeline import MockupPipeline
from providers.design import FileDesignSource
from providers.local_catalog import LocalGarmentCatalog


def main():
    parser = argparse.ArgumentParser(description="Render a garment mockup PNG locally")
    parser.add_argument("--garment", required=True, help="Path to a green-screen garment photo")
    parser.add_argument("--design", required=True, help="Path to the rendered design layer (PNG)")
    parser.add_argument("--color", default="#ffffff", help="Garment color as #RRGGBB")
    parser.add_argument("--print-area", default="30,35,30,30", help="top,left,width,height in percent")
    parser.add_argument("--out", required=True, help="Output PNG path")
    args = parser.parse_args()

    setup_logging()
    top, left, width, height = (float(v) for v in args.print_area.split(","))
    area = PrintArea(top=top, left=left, width=width, height=height).to_dict()
    catalog = LocalGarmentCatalog(
        garments={"demo": {"name": "Demo", "image": os.path.abspath(args.garment), "printArea": area}},
    )
    pipe = MockupPipeline.from_settings(settings, catalog=catalog)
    res = asyncio.run(pipe.export_png("demo", "front", args.color, FileDesignSource(args.design)))

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "wb") as dst:
        dst.write(res.data)
    if res.mockup:
        print(f"Saved: {args.out}")
    else:
        print(f"Saved design only ({res.error}): {args.out}")


if __name__ == "__main__":
    main()
