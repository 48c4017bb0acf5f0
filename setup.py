from setuptools import find_packages, setup

setup(
    name="norpix-seq",
    version="0.1.0",
    description="Decode Norpix SEQ camera recordings into images and timestamps",
    author="Garrett Johnson",
    packages=find_packages(include=["norpix_seq", "norpix_seq.*"]),
    python_requires=">=3.11",
    install_requires=[
        "kaitaistruct>=0.10",
        "matplotlib>=3.5.2",
        "numpy>=1.23.0",
        "opencv-python>=4.6.0.66",
        "Pillow>=9.2.0",
        "PyYAML>=6.0",
        "scipy>=1.8.1",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "norpix-seq=norpix_seq.main:main",
        ],
    },
)
