from setuptools import find_packages, setup

setup(
    name='ports-info',
    version='1.1.0',
    description='List listening network ports on Linux',
    license='GPL-3.0-or-later',
    url='https://github.com/mfat/ports',
    packages=find_packages(include=['portsinfo', 'portsinfo.*']),
    python_requires='>=3.8',
    install_requires=[
        'PyGObject',
        'psutil',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'ports-info = portsinfo.main:main',
        ],
    },
)
