from typing import Optional

from .config import OPENAI_API_KEY, ConfigStore
from .errors import ConfigDirUnresolvable
from .system_info import get_cwd, get_os_info, get_shell_info, get_user


def show_status(store: Optional[ConfigStore] = None):
    """Prints who and where we are, the host context and whether tt is configured."""
    store = store or ConfigStore()
    os_name, os_version = get_os_info()

    try:
        config_location = str(store.path)
        key_configured = store.is_configured(OPENAI_API_KEY)
    except ConfigDirUnresolvable:
        config_location = "Unavailable"
        key_configured = False

    print(f"User: {get_user()}")
    print(f"Current directory: {get_cwd()}")
    print(f"OS: {os_name} {os_version}")
    print(f"Shell: {get_shell_info()}")
    print(f"Config file: {config_location}")
    print(f"OpenAI API Key Configured: {'Yes' if key_configured else 'No'}")
