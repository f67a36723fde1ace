from src.class_attendance.class_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    import importlib

    from config import get_settings_module

    settings = importlib.import_module(get_settings_module())
    app.run(host="0.0.0.0", port=int(getattr(settings, "PORT", 5000)), debug=bool(getattr(settings, "DEBUG", False)))
