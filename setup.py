from setuptools import setup, find_packages

setup(
    name='pyproguardmap',
    description="Deobfuscate class names, field names and stack frames with a proguard mapping file.",
    entry_points={
        'console_scripts': ['pyproguardmap = pyproguardmap:main']
    },
    version='0.1',
    packages=find_packages(exclude=['tests']),
    python_requires='>=3.6',
    extras_require={
        'test': ['pytest'],
    },
)
