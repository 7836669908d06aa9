"""Example script: run the service, log in, and edit a board with autosave."""

import tempfile
import time
from pathlib import Path

from loguru import logger

from quickboard.board import BoardStore, DragKind, DropLocation, DropResult
from quickboard.service.config import Settings
from quickboard.service.server import start_server
from quickboard.sync import BoardClient, CredentialStore, SyncAgent
from quickboard.utils.logging import setup_logger


def main():
    setup_logger(level="DEBUG", use_rich=True)

    workdir = Path(tempfile.mkdtemp(prefix="quickboard-"))
    settings = Settings(
        host="127.0.0.1",
        port=8765,
        database_path=workdir / "quickboard.db",
        secret_key="demo-secret",
    )
    server = start_server(settings)
    time.sleep(1)

    client = BoardClient(server.url)
    client.register("demo", "demo-password")
    session = client.login("demo", "demo-password")

    store = BoardStore()
    agent = SyncAgent(store, client, CredentialStore(workdir / "session.json"))
    agent.on_status(lambda status: logger.info(f"Save status: {status.value}"))
    if not agent.start(session):
        logger.error("Could not load the board")
        server.stop()
        return

    todo = store.board.column_order[0]
    store.add_item(todo, "Write the quarterly report")
    store.add_item(todo, "Book the meeting room")
    store.apply_drop(
        DropResult(
            kind=DragKind.CARD,
            draggable_id=store.board.columns[todo].items[0].id,
            source=DropLocation(todo, 0),
            destination=DropLocation(store.board.column_order[1], 0),
        )
    )
    store.add_column("Someday")

    # Wait out the debounce window so the burst above goes out as one save.
    time.sleep(agent.debounce + 0.5)
    logger.info(f"Server copy: {BoardClient(server.url, session.token).get_board().to_dict()}")

    agent.stop()
    server.stop()


if __name__ == "__main__":
    main()
