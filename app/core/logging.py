import logging, sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def setup_logging(level: str = "INFO"):
    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(level.upper())
    h = logging.StreamHandler(sys.stdout)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    h.setFormatter(fmt)
    root.addHandler(h)
    # gspread/google-auth sunt foarte vorbăreți pe DEBUG
    for name in ("urllib3", "google.auth", "gspread"):
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
