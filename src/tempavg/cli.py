# connects input (file or server + city names) to the service and prints the result

from __future__ import annotations
from pathlib import Path
from typing import List, Optional

import typer

from .client import TemperatureAPIClient, fetch_all, missing
from .config import Settings, load_settings
from .errors import TemperatureError
from .log import configure_logging
from .models import CityResult
from .service import TemperatureService, lookup_many

app = typer.Typer(help="Average yearly temperatures per city from a city;date;temperature file.")

def _print_result(result: CityResult) -> None:
    typer.echo(result.city)
    for entry in result.data:
        # two decimals, the values are already rounded half-up by the aggregator
        typer.echo(f"  {entry.year}: {entry.average_temperature:.2f}")

@app.command(help="Load the file once and print the yearly averages for CITIES.")
def show(
    source: Path = typer.Argument(..., help="Path to the measurements file."),
    cities: List[str] = typer.Argument(..., help="City names, matched exactly."),
    skip_malformed: bool = typer.Option(False, "--skip-malformed", help="Skip bad lines instead of aborting."),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    configure_logging(log_level)
    service = TemperatureService(Settings(source_file=source, skip_malformed=skip_malformed))
    report = service.start(watch=False)
    try:
        if report is None or not report.file_present:
            typer.echo(f"File not found: {source}", err=True)
            raise typer.Exit(code=2)
        if not report.ok:
            typer.echo(f"Load failed: {report.error}", err=True)
            raise typer.Exit(code=1)

        try:
            results = lookup_many(service.store, cities)
        except TemperatureError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=2)

        exit_code = 0
        for city in cities:
            result = results[city]
            if result is None:
                typer.echo(f"Data for city {city} was not found", err=True)
                exit_code = 1
                continue
            _print_result(result)
        raise typer.Exit(code=exit_code)
    finally:
        service.stop()

@app.command(help="Ask a running server for the yearly averages of CITIES.")
def query(
    cities: List[str] = typer.Argument(..., help="City names, matched exactly."),
    url: Optional[str] = typer.Option(None, "--url", help="Base URL of a running server."),
    max_workers: int = typer.Option(4, "--workers", min=1),
) -> None:
    client = TemperatureAPIClient(base_url=url)
    try:
        results = fetch_all(client, cities, max_workers=max_workers)
    except TemperatureError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    for city in cities:
        if city in results:
            _print_result(results[city])
    not_found = missing(cities, results)
    for city in not_found:
        typer.echo(f"Data for city {city} was not found", err=True)
    raise typer.Exit(code=1 if not_found else 0)

@app.command(help="Serve lookups over HTTP and keep the cache in sync with the source file.")
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
) -> None:
    import uvicorn

    from .api import create_app

    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(TemperatureService(settings)),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,  # use shared logging config, not uvicorn's
    )

def main() -> None:
    app()

if __name__ == "__main__":
    main()
