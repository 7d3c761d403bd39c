"""CLI tests: run the stkdock entrypoint as a subprocess."""

CLEAN_ENV = {
    "OVH_APPLICATION_SECRET": "",
    "OVH_CONSUMER_KEY": "",
    "STK_PASSWORD": "",
}


def test_help(run_cli):
    rc, stdout, _ = run_cli("--help")
    assert rc == 0
    assert "provision" in stdout
    assert "recipe" in stdout


def test_recipe_prints_redacted_commands(run_cli, make_config_file):
    rc, stdout, _ = run_cli("recipe", "--config", make_config_file(), env=CLEAN_ENV)
    assert rc == 0
    lines = stdout.strip().split("\n")
    assert lines[0] == "sudo apt-get -y update"
    assert "supertuxkart --init-user --login=racer --password=***" in lines
    assert "hunter2pass" not in stdout
    assert lines[-1] == "sudo ufw allow 2759"


def test_provision_dry_run(run_cli, make_config_file):
    rc, stdout, stderr = run_cli("provision", "--config", make_config_file(), "--dry-run", env=CLEAN_ENV)
    assert rc == 0, stderr
    assert stdout == ""
    assert "[dry-run] GET https://ca.api.ovh.com/1.0/cloud/project/project-42/flavor" in stderr
    assert "[dry-run] POST https://ca.api.ovh.com/1.0/cloud/project/project-42/instance" in stderr
    assert "[dry-run] + sudo apt-get -y update" in stderr
    assert "[dry-run] + sudo ufw allow 2759" in stderr
    assert "--password=***" in stderr
    assert "hunter2pass" not in stderr
    assert "Provisioning finished." in stderr


def test_provision_dry_run_path_alias(run_cli, make_config_file):
    rc, _, stderr = run_cli("provision", "--path", make_config_file(), "--dry-run", env=CLEAN_ENV)
    assert rc == 0, stderr


def test_provision_missing_config(run_cli, tmp_path):
    rc, _, stderr = run_cli("provision", "--config", str(tmp_path / "nope.yaml"), env=CLEAN_ENV)
    assert rc == 1
    assert "Error [config]" in stderr


def test_provision_invalid_config(run_cli, make_config_file):
    rc, _, stderr = run_cli("provision", "--config", make_config_file(ssh={"host_key_policy": "trust-me"}), env=CLEAN_ENV)
    assert rc == 1
    assert "Error [config]: Invalid 'ssh.host_key_policy'" in stderr
