from hostprep.core.config.loader import (  # noqa: F401
    ConfigError,
    ProvisionerConfig,
    find_config_file,
    load_config,
    resolve_target_user,
)
