from pathlib import Path

from setuptools import find_packages, setup

# Load packages from requirements.txt
BASE_DIR = Path(__file__).parent
with open(Path(BASE_DIR, "requirements.txt")) as file:
    required_packages = [ln.strip() for ln in file.readlines() if ln.strip()]

# Define our package
setup(
    name="tutorai",
    version="0.1.0",
    description="Quiz scoring and learning-progress reconciliation engine",
    python_requires=">=3.10",
    packages=find_packages(include=["tutorai", "tutorai.*"]),
    package_data={"tutorai": ["schemas/*.json"]},
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0"],
        "dev": ["pytest>=7.0", "pre-commit==2.19.0"],
    },
)
