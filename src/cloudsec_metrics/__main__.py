"""Allow running the collector with ``python -m cloudsec_metrics``."""

from cloudsec_metrics.main import main

if __name__ == "__main__":
    main()
