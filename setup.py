from setuptools import find_packages, setup

package_name = 'collection_remote'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['test']),
    install_requires=[
        'setuptools',
        'PyQt6>=6.4.0',
        'qt-material>=2.14',
        'PyYAML>=6.0',
        'roslibpy>=1.5',
        'Twisted',
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='Nitish',
    maintainer_email='nitish@example.com',
    description='Remote control for a robot data-collection session over rosbridge',
    license='MIT',
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'collection_remote = collection_remote.main:main',
            'collection_remote_cli = collection_remote.cli:main',
        ],
    },
)
