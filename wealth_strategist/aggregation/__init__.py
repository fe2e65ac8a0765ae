"""
Data aggregation: gather the five provider sources into one ``DataPacket``.

Modules
-------
providers : Provider protocols + ``StaticDataProvider`` (dict / JSON file).
collector : ``collect_data_packet()``: concurrent fan-out / fan-in.
quality   : ``DataQualityReport`` + ``build_quality_report()`` + confidence level.
"""
