import os
from flask import current_app, has_app_context
from gfm.models import utcnow

AUDIT_LOG_FILE = os.path.join("logs", "audit.log")

def log_event(event_type, username=None, ip=None, description=None, level="INFO", print_to_console=False):
    """
    Logs a security or audit-related event to a file.

    Parameters:
        event_type (str): The type of the event (e.g., LOGIN_SUCCESS).
        username (str|None): The acting user, if available.
        ip (str|None): IP address, if available.
        description (str|None): Additional context.
        level (str): Log level (e.g., INFO, WARNING, ERROR).
        print_to_console (bool): Also emit through the app logger (for debugging/dev).
    """
    log_file_path = AUDIT_LOG_FILE
    if has_app_context():
        log_file_path = current_app.config.get("AUDIT_LOG_FILE", AUDIT_LOG_FILE)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    timestamp = utcnow().strftime('%Y-%m-%d %H:%M:%S')
    log_entry = (
        f"[{timestamp}] [{level.upper()}] EVENT: {event_type} | "
        f"USER: {username or 'N/A'} | IP: {ip or 'N/A'} | DESC: {description or 'N/A'}\n"
    )

    with open(log_file_path, "a") as log_file:
        log_file.write(log_entry)

    if print_to_console and has_app_context():
        current_app.logger.info(log_entry.strip())
