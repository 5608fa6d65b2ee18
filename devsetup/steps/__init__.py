from .step_00_check_dependencies import CheckDependenciesStep
from .step_10_update_identity import UpdateIdentityStep
from .step_20_install_dotfiles import InstallDotfilesStep
from .step_30_clone_repos import CloneReposStep
from .step_40_setup_cloud import SetupCloudStep
from .step_50_install_deps import InstallDepsStep
from .step_60_install_hooks import InstallHooksStep
from .step_65_setup_auth_tool import SetupAuthToolStep
from .step_70_download_data_dump import DownloadDataDumpStep
from .step_80_create_databases import CreateDatabasesStep

__all__ = [
    "CheckDependenciesStep",
    "UpdateIdentityStep",
    "InstallDotfilesStep",
    "CloneReposStep",
    "SetupCloudStep",
    "InstallDepsStep",
    "InstallHooksStep",
    "SetupAuthToolStep",
    "DownloadDataDumpStep",
    "CreateDatabasesStep",
]
