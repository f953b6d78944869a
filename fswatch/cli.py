import click
from rich.console import Console

from fswatch import __version__, config
from fswatch.classifier import EventClassifier
from fswatch.errors import RootNotWatchableError
from fswatch.lifecycle import Lifecycle
from fswatch.logger import setup_logger
from fswatch.sink import EventSink
from fswatch.source import NativeEventSource
from fswatch.watchset import WatchSetManager

DEFAULT_ROOT = "./"


@click.command()
@click.argument("root", required=False, default=DEFAULT_ROOT)
@click.version_option(version=__version__, prog_name="fswatch")
@click.pass_context
def main(ctx, root):
    """
    Watch ROOT (default: the current directory) and everything beneath it,
    printing CREATE, REMOVE and WRITE events as they happen.
    """
    console = Console(stderr=True, highlight=False, soft_wrap=True)
    try:
        cfg = config.load_config()
    except Exception as e:
        console.print(f"Error loading configuration: {e}", markup=False)
        ctx.exit(1)

    log_cfg = cfg.get("logging", {})
    watcher_cfg = cfg.get("watcher", {})
    log = setup_logger("fswatch", log_cfg.get("level", "WARNING"), log_cfg.get("log_dir") or None)

    console.print(f"Begin watching: {root}", markup=False)

    try:
        source = NativeEventSource()
        source.start()
    except OSError as e:
        log.error(f"Could not start the native event source: {e}")
        console.print("[Error!] Can't start watching.", style="bold red", markup=False)
        ctx.exit(1)

    try:
        watchset = WatchSetManager(source)
        lifecycle = Lifecycle(
            source,
            EventClassifier(watchset, EventSink()),
            poll_interval=watcher_cfg.get("poll_interval", 0.5),
            join_timeout=watcher_cfg.get("join_timeout", 5.0),
        )
        # Signals received during the initial walk let it finish, then
        # run() returns straight away.
        with lifecycle.handling_signals():
            try:
                watchset.add_tree(root)
            except RootNotWatchableError as e:
                log.debug(str(e))
                console.print("[Error!] Can't watch the root directory.", style="bold red", markup=False)
                ctx.exit(1)

            log.info(f"Watching {len(watchset.watched)} directories under {root}")
            code = lifecycle.run()
    finally:
        source.close()

    ctx.exit(code)


if __name__ == "__main__":
    main()
