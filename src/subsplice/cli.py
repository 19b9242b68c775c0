"""CLI entry point for subsplice."""

import sys
from pathlib import Path

import click
from loguru import logger

from .audio import decode_pcm_base64, read_wav, write_wav
from .config import Config
from .editor import TimelineEditor
from .exceptions import OperationCancelled, SubspliceError
from .session import EditorSession
from .silence import detect_silence
from .splice import remove_segments, retime_after_removal, splice_audio
from .srt import adjust_gaps, read_srt, subtitles_to_srt, write_srt
from .synthesis import VOICES, preview_voice


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _default_output(path: str, suffix: str) -> Path:
    p = Path(path)
    return p.with_name(f"{p.stem}.{suffix}{p.suffix}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """Edit subtitle timing and splice generated speech to match."""
    _configure_logging(verbose)


@main.command()
@click.argument("script_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--voice", type=click.Choice(VOICES), default=None, help="Voice name (default: SUBSPLICE_VOICE or alloy)")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output WAV path (default: script_name.wav); the SRT is written beside it",
)
@click.option(
    "--split-chars",
    type=int,
    default=None,
    help="Target maximum characters per subtitle line",
)
def generate(script_path: str, voice: str | None, output: str | None, split_chars: int | None) -> None:
    """Synthesize SCRIPT_PATH to speech and transcribe it into SRT.

    \b
    Examples:
      subsplice generate script.txt --voice nova
      subsplice generate script.txt -o take1.wav --split-chars 30
    """
    config = Config.from_env()
    if not config.has_openai():
        raise click.ClickException("OPENAI_API_KEY environment variable required.")
    if split_chars is not None:
        config.split_chars = split_chars

    wav_output = Path(output) if output else Path(script_path).with_suffix(".wav")
    srt_output = wav_output.with_suffix(".srt")
    text = Path(script_path).read_text(encoding="utf-8")

    session = EditorSession(config)
    click.echo(f"Generating speech and subtitles for {script_path}...")
    try:
        item = session.generate(text, voice=voice)
    except OperationCancelled:
        click.echo("Operation cancelled.")
        sys.exit(130)
    except (SubspliceError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    write_wav(item.audio, wav_output)
    write_srt(item.srt_lines, srt_output)
    click.echo(f"  Audio: {wav_output} ({item.audio.duration:.2f}s)")
    click.echo(f"  Subtitles: {srt_output} ({len(item.srt_lines)} lines)")
    click.secho("Done!", fg="green", bold=True)


@main.command()
@click.argument("voice", type=click.Choice(VOICES))
@click.option("--output", "-o", type=click.Path(), help="Output WAV path (default: VOICE.wav)")
def preview(voice: str, output: str | None) -> None:
    """Synthesize a short sample sentence with VOICE."""
    config = Config.from_env()
    if not config.has_openai():
        raise click.ClickException("OPENAI_API_KEY environment variable required.")

    output_path = Path(output) if output else Path(f"{voice}.wav")
    try:
        buffer = decode_pcm_base64(preview_voice(voice, config), sample_rate=config.sample_rate)
    except SubspliceError as e:
        raise click.ClickException(str(e)) from e

    write_wav(buffer, output_path)
    click.echo(f"Saved {voice} preview to {output_path} ({buffer.duration:.2f}s)")


@main.command()
@click.argument("audio_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("srt_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output WAV path")
@click.option("--srt-output", type=click.Path(), help="Output SRT path")
def splice(audio_path: str, srt_path: str, output: str | None, srt_output: str | None) -> None:
    """Rebuild AUDIO_PATH from the ranges in an edited SRT_PATH.

    Lines whose end is at or before their start are cut from the audio.
    """
    output_path = Path(output) if output else _default_output(audio_path, "spliced")
    srt_output_path = Path(srt_output) if srt_output else output_path.with_suffix(".srt")

    try:
        buffer = read_wav(audio_path)
        new_buffer, new_lines = splice_audio(buffer, read_srt(srt_path))
    except (SubspliceError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    write_wav(new_buffer, output_path)
    write_srt(new_lines, srt_output_path)
    click.echo(f"{buffer.duration:.2f}s -> {new_buffer.duration:.2f}s, {len(new_lines)} lines")
    click.echo(f"  Saved to {output_path} and {srt_output_path}")


@main.command()
@click.argument("audio_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--threshold", type=float, default=0.01, show_default=True, help="Silence amplitude")
@click.option(
    "--min-duration",
    type=float,
    default=0.25,
    show_default=True,
    help="Minimum silence length in seconds",
)
@click.option("--remove", is_flag=True, help="Cut the detected silences out of the audio")
@click.option("--srt", "srt_path", type=click.Path(exists=True, dir_okay=False), help="SRT to retime with --remove")
@click.option("--output", "-o", type=click.Path(), help="Output WAV path for --remove")
def silence(
    audio_path: str,
    threshold: float,
    min_duration: float,
    remove: bool,
    srt_path: str | None,
    output: str | None,
) -> None:
    """List (or remove) silent stretches in AUDIO_PATH."""
    try:
        buffer = read_wav(audio_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    segments = detect_silence(buffer, threshold=threshold, min_silence_duration=min_duration)
    click.echo(f"Found {len(segments)} silent segments")
    for seg in segments:
        click.echo(f"  {seg.start:8.3f} -> {seg.end:8.3f} ({seg.duration:.2f}s)")

    if not remove or not segments:
        return

    output_path = Path(output) if output else _default_output(audio_path, "nosilence")
    try:
        new_buffer = remove_segments(buffer, segments)
    except SubspliceError as e:
        raise click.ClickException(str(e)) from e
    write_wav(new_buffer, output_path)
    click.echo(f"  Saved to {output_path} ({new_buffer.duration:.2f}s)")

    if srt_path:
        retimed = retime_after_removal(read_srt(srt_path), segments, buffer.sample_rate, buffer.frames)
        srt_output = output_path.with_suffix(".srt")
        write_srt(retimed, srt_output)
        click.echo(f"  Saved to {srt_output}")


@main.command()
@click.argument("srt_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--ms", "delta_ms", type=int, required=True, help="Milliseconds to shift (may be negative)")
@click.option("--output", "-o", type=click.Path(), help="Output SRT path (default: stdout)")
def shift(srt_path: str, delta_ms: int, output: str | None) -> None:
    """Shift every line in SRT_PATH by a fixed offset."""
    editor = TimelineEditor(read_srt(srt_path))
    lines = editor.bulk_shift(delta_ms)
    if output:
        write_srt(lines, output)
    else:
        click.echo(subtitles_to_srt(lines))


@main.command("fix-gaps")
@click.argument("srt_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output SRT path (default: stdout)")
def fix_gaps(srt_path: str, output: str | None) -> None:
    """End each line 1 ms before the next one starts."""
    lines = adjust_gaps(read_srt(srt_path))
    if output:
        write_srt(lines, output)
    else:
        click.echo(subtitles_to_srt(lines))


if __name__ == "__main__":
    main()
