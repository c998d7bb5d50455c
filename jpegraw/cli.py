"""CLI interface for jpegraw -- exif, orientation, info, decode, encode, check."""

import sys
from functools import wraps
from pathlib import Path

import click

import jpegraw
from jpegraw.decoder import Decoder, is_broken
from jpegraw.encoder import Encoder
from jpegraw.errors import JPEGError
from jpegraw.log import (
    cli_error, cli_field, cli_header, cli_success, cli_warning,
    document_to_json, format_document, log_error, log_info, log_warn,
    set_color_enabled,
)
from jpegraw.models import CheckResult
from jpegraw.pixels.formats import FORMATS

_DECODE_FORMATS = [f.name for f in FORMATS if f.decode]
_ENCODE_FORMATS = [f.name for f in FORMATS if f.encode]


def _fail(message: str):
    click.echo(cli_error(f'Error: {message}'), err=True)
    sys.exit(1)


def _reports_errors(func):
    """Turn library errors into a red message and exit status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (JPEGError, MemoryError) as e:
            _fail(str(e))
    return wrapper


def _read(path) -> bytes:
    return Path(path).read_bytes()


@click.group()
@click.version_option(version=jpegraw.__version__, prog_name='jpegraw')
@click.option('--color/--no-color', default=None,
              help='Force colored output on or off (default: auto).')
def main(color):
    """jpegraw -- raw JPEG pixels and EXIF metadata.

    Decode JPEG files to raw pixel buffers, encode raw buffers back to
    JPEG, and inspect EXIF tags and orientation.
    """
    if color is not None:
        set_color_enabled(color)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json-out', type=click.Path(), help='Write the tags as JSON to file.')
@_reports_errors
def exif(path, json_out):
    """Print the EXIF tags of a JPEG file."""
    meta = Decoder(with_exif_tags=True).read_header(_read(path))
    tags = meta.exif_tags or {}

    if not tags:
        click.echo(cli_warning(f'No EXIF data in {Path(path).name}'))
    for line in format_document(tags):
        click.echo(line)

    if json_out:
        with open(json_out, 'w') as f:
            f.write(document_to_json(tags))
        click.echo(f'Tags written to {json_out}')


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@_reports_errors
def orientation(path):
    """Print the EXIF orientation code (1-8) of a JPEG file."""
    meta = Decoder(apply_orientation=True).read_header(_read(path))
    click.echo(str(meta.orientation))


def _echo_meta(meta):
    click.echo(cli_field('Size', f'{meta.width}x{meta.height}'))
    click.echo(cli_field('Stride', meta.stride))
    click.echo(cli_field('Original colorspace', meta.original_colorspace))
    click.echo(cli_field('Output colorspace', meta.output_colorspace))
    click.echo(cli_field('Components', meta.num_components))
    click.echo(cli_field('Orientation', meta.orientation))
    if meta.colormap is not None:
        click.echo(cli_field('Colors', len(meta.colormap)))


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--pixel-format', type=click.Choice(_DECODE_FORMATS, case_sensitive=False),
              default='RGB', show_default=True)
@_reports_errors
def info(path, pixel_format):
    """Show header metadata of a JPEG file."""
    decoder = Decoder(pixel_format=pixel_format, apply_orientation=True)
    meta = decoder.read_header(_read(path))
    click.echo(cli_header(Path(path).name))
    _echo_meta(meta)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), required=True,
              help='Raw pixel output file.')
@click.option('--pixel-format', type=click.Choice(_DECODE_FORMATS, case_sensitive=False),
              default='RGB', show_default=True)
@click.option('--apply-orientation', is_flag=True,
              help='Rotate/flip pixels upright per the EXIF orientation.')
@click.option('--scale', type=float, default=1.0, show_default=True,
              help='Output scale factor.')
@_reports_errors
def decode(path, output, pixel_format, apply_orientation, scale):
    """Decode a JPEG file to raw pixels."""
    decoder = Decoder(pixel_format=pixel_format,
                      apply_orientation=apply_orientation, scale=scale)
    image = decoder.decode(_read(path))
    Path(output).write_bytes(image.data)

    click.echo(cli_success(f'Wrote {len(image)} bytes to {output}'))
    _echo_meta(image.meta)


@main.command()
@click.argument('raw', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), required=True,
              help='JPEG output file.')
@click.option('--width', type=int, required=True)
@click.option('--height', type=int, required=True)
@click.option('--pixel-format', type=click.Choice(_ENCODE_FORMATS, case_sensitive=False),
              default='RGB', show_default=True)
@click.option('--quality', type=int, default=75, show_default=True)
@click.option('--orientation', type=int, default=None,
              help='Orientation code (1-8) to record in an Exif segment.')
@click.option('--stride', type=int, default=None,
              help='Bytes per input row (default: tightly packed).')
@_reports_errors
def encode(raw, output, width, height, pixel_format, quality, orientation, stride):
    """Encode a raw pixel file to JPEG."""
    encoder = Encoder(width, height, pixel_format=pixel_format,
                      quality=quality, orientation=orientation, stride=stride)
    jpeg = encoder.encode(_read(raw))
    Path(output).write_bytes(jpeg)
    click.echo(cli_success(f'Wrote {len(jpeg)} bytes to {output}'))


def check_files(paths):
    """Probe each file; unreadable files are reported as broken."""
    results = []
    for path in paths:
        try:
            data = _read(path)
        except OSError as e:
            results.append(CheckResult(str(path), True, str(e)))
            continue
        results.append(CheckResult(str(path), is_broken(data)))
    return results


@main.command()
@click.argument('paths', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False))
@click.option('--log', type=click.Path(), help='Write log to file.')
def check(paths, log):
    """Report whether each JPEG file can be read."""
    log_file = open(log, 'w') if log else None

    def log_line(line):
        if log_file:
            log_file.write(line + '\n')
            log_file.flush()

    results = check_files(paths)
    broken = 0
    for result in results:
        name = Path(result.path).name
        if result.is_broken:
            broken += 1
            detail = f' ({result.error})' if result.error else ''
            click.echo(f'  {name} -- {cli_warning("BROKEN")}{detail}')
            if result.error:
                log_line(log_error(f'{result.path}: {result.error}'))
            else:
                log_line(log_warn(f'{result.path}: broken'))
        else:
            click.echo(f'  {name} -- {cli_success("OK")}')
            log_line(log_info(f'{result.path}: ok'))

    click.echo(f'\nChecked {len(results)} file(s), {broken} broken')

    if log_file:
        log_file.close()

    if broken:
        sys.exit(1)


if __name__ == '__main__':
    main()
