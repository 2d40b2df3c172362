import logging

from config import load_config
from cli import check_color_support, command_loop, create_store


if __name__ == "__main__":
    config = load_config()

    # Configure logging
    logging.basicConfig(
        level=config["log_level"],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    check_color_support()

    # Load goals and run the command interface
    store, toolset = create_store(config)
    command_loop(store, toolset)
