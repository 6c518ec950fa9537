from .handlers import (  # noqa: F401
    register,
    login,
    get_profile,
    list_users,
    create_task,
    presign_upload,
    presign_download,
)
