from superdb.options import iterdict_data_loader

from libb import Setting

Setting.unlock()

mysql = Setting()
mysql.drivername='mysql'
mysql.hostname='localhost'
mysql.username='app'
mysql.password='app'
mysql.database='test_db'
mysql.port=3306
mysql.timeout=30
mysql.alias='primary'
mysql.data_loader=iterdict_data_loader

sqlite = Setting()
sqlite.drivername='sqlite'
sqlite.database=':memory:'
sqlite.alias='local'
sqlite.data_loader=iterdict_data_loader

Setting.lock()
