"""Entry point for running voicewriter as a module: python -m voicewriter"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from voicewriter.config import Config, EngineBackend, OutputMode
from voicewriter.errors import ListenerDisconnected

NOISY_LOGGERS = (
    "urllib3",
    "httpx",
    "httpcore",
    "faster_whisper",
    "ctranslate2",
    "huggingface_hub",
    "mlx",
    "sounddevice",
)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity setting."""
    level = logging.INFO if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Reduce noise from all third-party libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicewriter",
        description="Push-to-talk transcription: hold a key to record, release to transcribe.",
    )
    parser.add_argument("-k", "--key", help="Hotkey to hold while speaking (e.g. F9, ScrollLock)")
    parser.add_argument(
        "-o",
        "--output",
        choices=[mode.value for mode in OutputMode],
        help="Where to send the text",
    )
    parser.add_argument("-m", "--model", help="Speech model name or path")
    parser.add_argument(
        "--engine",
        choices=[backend.value for backend in EngineBackend],
        help="Speech-to-text backend",
    )
    parser.add_argument("--language", help="Spoken language code, or 'auto'")
    parser.add_argument("--device", type=int, help="Audio input device index")
    parser.add_argument(
        "--cleanup",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Clean up transcripts with a local chat model",
    )
    parser.add_argument("--cleanup-host", help="Cleanup service host")
    parser.add_argument("--cleanup-port", type=int, help="Cleanup service port")
    parser.add_argument("--cleanup-model", help="Cleanup model name")
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Disable desktop notifications",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Override configuration with command-line arguments that were given."""
    if args.key:
        config.session.hotkey = args.key
    if args.output:
        config.output_mode = OutputMode(args.output)
    if args.model:
        config.engine.model_name = args.model
    if args.engine:
        config.engine.backend = EngineBackend(args.engine)
    if args.language:
        config.engine.language = None if args.language.lower() == "auto" else args.language
    if args.device is not None:
        config.audio.device_id = args.device
    if args.cleanup is not None:
        config.cleanup.enabled = args.cleanup
    if args.cleanup_host:
        config.cleanup.host = args.cleanup_host
    if args.cleanup_port is not None:
        config.cleanup.port = args.cleanup_port
    if args.cleanup_model:
        config.cleanup.model = args.cleanup_model
    if args.no_notify:
        config.notifications = False
    if args.verbose:
        config.verbose = True
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Load .env file if it exists (before reading config)
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config = apply_args(Config.from_env(), args)
    setup_logging(config.verbose)

    # Imported here so --help works without audio or keyboard backends
    from voicewriter.app import VoiceWriterApp

    app = VoiceWriterApp(config)

    try:
        app.run()
        return 0
    except ListenerDisconnected as e:
        logging.error("Keyboard listener disconnected: %s", e)
        return 1
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        return 130
    except Exception as e:
        logging.exception("Fatal error: %s", e)
        return 1
    finally:
        app.shutdown()


if __name__ == "__main__":
    sys.exit(main())
