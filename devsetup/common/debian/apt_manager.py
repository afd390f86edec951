# devsetup/common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from typing import List, Optional, Union

from devsetup.common.command_utils import (
    command_exists,
    run_command,
    run_elevated_command,
)
from devsetup.config import APT_ENVIRONMENT
from devsetup.config_models import AppSettings


class AptManager:
    """
    A manager for Debian apt packages using the command-line tools.

    Every apt-get call runs non-interactively: DEBIAN_FRONTEND and
    APT_LISTCHANGES_FRONTEND are passed through to the elevated command.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the AptManager.

        Raises:
            FileNotFoundError: If apt-get is not available.
        """
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def _apt_get(
        self, args: List[str], app_settings: AppSettings
    ) -> subprocess.CompletedProcess:
        return run_elevated_command(
            ["apt-get", *args],
            app_settings,
            capture_output=True,
            current_logger=self.logger,
            env=APT_ENVIRONMENT,
        )

    def update(
        self, app_settings: AppSettings, raise_error: bool = False
    ) -> bool:
        """
        Updates the list of available packages using 'apt-get update'.

        Args:
            app_settings: The application settings.
            raise_error: Re-raise the command failure instead of returning False.

        Returns:
            True if successful, False otherwise.
        """
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        try:
            self._apt_get(["update", "-qq"], app_settings)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            if raise_error:
                raise
            return False
        self.logger.info("Apt package lists updated successfully.")
        return True

    def upgrade(
        self, app_settings: AppSettings, raise_error: bool = False
    ) -> bool:
        """Upgrades installed packages using 'apt-get upgrade'."""
        self.logger.info("Upgrading installed packages via 'apt-get upgrade'...")
        try:
            self._apt_get(["upgrade", "-y", "-qq"], app_settings)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to upgrade packages: {e}")
            if raise_error:
                raise
            return False
        self.logger.info("Installed packages upgraded successfully.")
        return True

    def missing_packages(
        self, packages: List[str], app_settings: AppSettings
    ) -> List[str]:
        """Return the packages dpkg does not report as installed."""
        packages_to_install = []
        for pkg_name in packages:
            try:
                result = run_command(
                    ["dpkg-query", "-W", "-f=${db:Status-Status}", pkg_name],
                    app_settings,
                    capture_output=True,
                    check=True,
                    current_logger=self.logger,
                )
                if result.stdout.strip() == "installed":
                    self.logger.info(
                        f"Package '{pkg_name}' is already installed. Skipping."
                    )
                    continue
            except subprocess.CalledProcessError:
                pass
            self.logger.info(f"Marking package for installation: {pkg_name}")
            packages_to_install.append(pkg_name)
        return packages_to_install

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = True,
        raise_error: bool = False,
    ) -> bool:
        """
        Installs one or more packages using 'apt-get install'.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to update the package lists before installing.
            raise_error: Re-raise the command failure instead of returning False.

        Returns:
            True if successful, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]

        if update_first:
            if not self.update(app_settings, raise_error=raise_error):
                return False

        packages_to_install = self.missing_packages(packages, app_settings)
        if not packages_to_install:
            self.logger.info("All requested packages are already installed.")
            return True

        self.logger.info(
            f"Committing installation for: {', '.join(packages_to_install)}"
        )
        try:
            self._apt_get(["install", "-y", "-qq", *packages_to_install], app_settings)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to install packages: {e}")
            if raise_error:
                raise
            return False
        self.logger.info("Packages installed successfully.")
        return True
