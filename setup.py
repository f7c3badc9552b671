"""Setup configuration for cloud-storage-wagon package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = (
    readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""
)

setup(
    name="cloud-storage-wagon",
    version="1.0.0",
    description="Artifact repository transports for S3 and Google Cloud Storage",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["wagon", "wagon.*"]),
    py_modules=["wagon_transfer"],
    python_requires=">=3.10",
    install_requires=[
        "boto3>=1.26.0",
        "google-cloud-storage>=2.10.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "moto[s3]>=5.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=0.990",
        ],
    },
    entry_points={
        "console_scripts": [
            "wagon-transfer=wagon_transfer:main",
        ],
        "wagon.content_type_detectors": [
            "mimetypes = wagon.content_type:MimetypesDetector",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Topic :: System :: Archiving",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    keywords="artifact-repository s3 gcs gsutil object-storage transport",
)
