"""Stylesheet for the tuner screen."""

RADIO_APP_CSS = """
#main_container {
    padding: 1 2;
}

#station_name {
    text-style: bold;
    content-align: center middle;
    height: 1;
}

#station_name.unnamed {
    color: $text-muted;
    text-style: italic;
}

#frequency_display {
    text-style: bold;
    content-align: center middle;
    height: 1;
    color: $accent;
}

#status_display {
    height: 1;
    margin-bottom: 1;
}

#input_area, #name_area, #control_area, #preset_area, #scan_area, #list_area {
    height: auto;
}

Input {
    width: 1fr;
}

Button {
    margin: 0 1;
}

#stations_table {
    height: 1fr;
}
"""
