"""Development entry point: ``python app.py`` or ``flask --app app run``."""

from site_attendance.main import create_app

app = create_app()


if __name__ == "__main__":
    # The reloader would start a second scheduler.
    app.run(debug=app.config["DEBUG"], use_reloader=False)
