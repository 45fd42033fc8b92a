from setuptools import setup, find_packages

setup(
    name="humanoid-footstep-planner",
    version="1.0.0",
    packages=find_packages(include=["footstep_planning", "footstep_planning.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "PyYAML>=6.0",
        "matplotlib>=3.5.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    author="Footstep Planning Team",
    description="Anytime footstep planning for humanoid robots on 2D occupancy grids",
    python_requires=">=3.8",
)
