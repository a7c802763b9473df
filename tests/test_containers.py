"""Tests for container and OSTree literal emitters."""

from stagegen.stages import containers


class TestContainerStages:
    def test_nginx_config(self):
        assert containers.nginx_config_stage_options(
            "/etc/nginx.conf", "/usr/share/nginx/html", "8080"
        ) == {
            "path": "/etc/nginx.conf",
            "config": {
                "listen": "8080",
                "root": "/usr/share/nginx/html",
                "daemon": False,
                "pid": "/tmp/nginx.pid",
            },
        }

    def test_chmod(self):
        assert containers.chmod_stage_options("/usr/share/nginx/html", "a+rX", True) == {
            "items": {"/usr/share/nginx/html": {"mode": "a+rX", "recursive": True}}
        }

    def test_ostree_config(self):
        assert containers.ostree_config_stage_options("/ostree/repo", True) == {
            "repo": "/ostree/repo",
            "config": {"sysroot": {"readonly": True, "bootloader": "none"}},
        }

    def test_efi_mkdir(self):
        assert containers.efi_mkdir_stage_options() == {
            "paths": [{"path": "/boot/efi", "mode": 0o700}]
        }
