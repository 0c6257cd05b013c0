from datetime import datetime, timezone

from egov_scraper.config import load_config
from egov_scraper.roster import load_credentials, load_roster, run_key


def test_load_config_defaults_and_overrides(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "db_path: state.db\n"
        "http:\n  timeout: 10\n  unknown_key: 1\n"
        "portal:\n  target_status: 手続終了\n",
        encoding="utf-8",
    )
    cfg = load_config(str(path))
    assert cfg.db_path == "state.db"
    assert cfg.http.timeout == 10
    assert cfg.http.rate_limit == 1.0
    assert cfg.portal.target_status == "手続終了"
    assert cfg.portal.timezone == "Asia/Tokyo"
    assert cfg.storage.root_dir == "data/drive"


def test_load_roster(tmp_path):
    path = tmp_path / "roster.yaml"
    path.write_text(
        "credentials:\n  login_id: hr@example.com\n  password: pw\n"
        "clients:\n"
        "  - name: A\n    url: https://a.smarthr.jp/egov_requests\n"
        "    drive: https://drive.google.com/drive/folders/folderA\n"
        "  - name: blank\n    url: ''\n",
        encoding="utf-8",
    )
    clients, creds = load_roster(str(path))
    assert [c.name for c in clients] == ["A"]
    assert clients[0].folder_id == "folderA"
    assert clients[0].base_url == "https://a.smarthr.jp"
    assert clients[0].login_url == "https://a.smarthr.jp/login"
    assert creds.login_id == "hr@example.com"
    assert "pw" not in repr(creds)


def test_credentials_from_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("EGOV_LOGIN_ID", "env-id")
    monkeypatch.setenv("EGOV_PASSWORD", "env-pw")
    creds = load_credentials(None)
    assert (creds.login_id, creds.password) == ("env-id", "env-pw")


def test_run_key_uses_tokyo_date():
    # 2024-03-31 16:00 UTC is already April 1st in Tokyo.
    now = datetime(2024, 3, 31, 16, 0, tzinfo=timezone.utc)
    assert run_key("Asia/Tokyo", now) == "20240401"


def test_log_level_read_from_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("log_level: DEBUG\n", encoding="utf-8")
    assert load_config(str(path)).log_level == "DEBUG"
    path.write_text("db_path: x.db\n", encoding="utf-8")
    assert load_config(str(path)).log_level == "INFO"
