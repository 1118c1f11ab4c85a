from remembra.app import AppSettings, run_sweep

__all__ = ["main"]


def main() -> None:
    """Entry point for the lifecycle sweep job."""
    settings = AppSettings.from_env()
    run_sweep(settings)


if __name__ == "__main__":
    main()
