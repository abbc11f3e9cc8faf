import os.path
import re

from setuptools import find_packages, setup

try:
    # Import all script providers so that ENTRYPOINTS gets populated.
    from supervisorlib.scripts import service  # noqa: F401
    from supervisorlib.scripts.utils import ENTRYPOINTS
except ImportError:
    # Avoid chicken-and-egg dependency requirements during initial installation.
    # This means you need to re-run setup in order to gain script entrypoints.
    ENTRYPOINTS = []


HERE = os.path.abspath(os.path.dirname(__file__))

README = os.path.join(HERE, "README.rst")


def version():
    with open(os.path.join(HERE, "debian", "changelog")) as log:
        first = next(l for l in log if l.strip())
    return re.split("[()]", first)[1].replace("~", "")


setup(name="supervisorlib",
      version=version(),
      description="Program config files and state reconciliation for the supervisord daemon.",
      long_description=open(README).read(),
      long_description_content_type="text/x-rst",
      author="Supervisorlib Maintainers",
      author_email="maintainers@example.org",
      platforms=["Any"],
      python_requires=">=3.7",
      install_requires=["docopt", "jinja2"],
      packages=find_packages(exclude=["tests"]),
      package_data={"supervisorlib": ["templates/*.j2"]},
      entry_points={"console_scripts": ENTRYPOINTS})
